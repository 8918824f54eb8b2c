"""
Dashboard assembly: analysis, recommendations and histograms for one dataset.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence
from chartwise.core.config import Settings
from chartwise.core.performance import track_performance
from chartwise.core.schemas import DashboardResponse, HistogramBin
from chartwise.services.aggregation import histogram_bins
from chartwise.services.dates import DateParser
from chartwise.services.inference import get_recommendations
from chartwise.services.profiler import process_data

logger = logging.getLogger(__name__)


@track_performance("build_dashboard")
def build_dashboard(
    rows: Sequence[Dict[str, Any]],
    settings: Settings,
    filename: Optional[str] = None
) -> Optional[DashboardResponse]:
    """
    Analyze rows, pick the charts to show first and bin every numeric column.

    Recommendations and histograms are computed on the full dataset; only the
    rows sent back are truncated to settings.max_dataset_rows.

    Returns:
        DashboardResponse, or None when there is nothing to analyze
    """
    analysis = process_data(rows, DateParser(dayfirst=settings.date_dayfirst))
    if analysis is None:
        return None

    recommendations = get_recommendations(analysis.data, analysis.columns, settings.recommendation_limit)

    # One distribution per numeric column, recommended or not
    histograms: Dict[str, List[HistogramBin]] = {}
    for col in analysis.columns:
        if col.type == "number":
            histograms[col.key] = histogram_bins([row[col.key] for row in analysis.data])

    truncated = analysis.row_count > settings.max_dataset_rows
    if truncated:
        analysis.data = analysis.data[:settings.max_dataset_rows]
        logger.info(f"Dataset truncated from {analysis.row_count} to {settings.max_dataset_rows} rows for response")

    return DashboardResponse(
        filename=filename,
        analysis=analysis,
        recommendations=recommendations,
        histograms=histograms,
        truncated=truncated
    )
