"""
Chart recommendation service.

This module scores candidate charts from typed columns and their statistics
using deterministic rules and returns the best few.
"""
import logging
from typing import List, Dict, Any, Sequence
from chartwise.core.schemas import AnalyzedColumn, ChartConfig
from chartwise.services.aggregation import calculate_correlation, paired_values

logger = logging.getLogger(__name__)

RECOMMENDATION_LIMIT = 4
CORRELATION_THRESHOLD = 0.3
STRONG_CORRELATION = 0.7
PIE_MAX_CATEGORIES = 6
CATEGORY_MAX_UNIQUE = 50
HIGH_VARIANCE = 1000


def get_recommendations(
    data: Sequence[Dict[str, Any]],
    columns: Sequence[AnalyzedColumn],
    limit: int = RECOMMENDATION_LIMIT
) -> List[ChartConfig]:
    """
    Rank chart recommendations for an analyzed dataset.

    Args:
        data: Typed rows (AnalysisResult.data)
        columns: Column metadata with statistics
        limit: Maximum number of recommendations returned

    Returns:
        Charts sorted by score (highest first), one per title
    """
    candidates: List[ChartConfig] = []

    numeric_cols = [c for c in columns if c.type == "number"]
    category_cols = [c for c in columns if c.type in ("category", "text")]
    date_cols = [c for c in columns if c.type == "date"]

    # 1. Rule: spread-out NUMERIC = DISTRIBUTION
    for col in numeric_cols:
        if col.stats.std_dev is None or col.stats.std_dev <= 0:
            continue
        score = 50 + (20 if col.stats.variance > HIGH_VARIANCE else 0)
        candidates.append(ChartConfig(
            type="bar",
            x_axis=col.key,
            y_axis=col.key,
            title=f"Distribution of {col.label}",
            description=f"Shows how {col.label} is spread across the dataset.",
            score=score,
            is_histogram=True
        ))

    # 2. Rule: TIME + VALUE = LINE CHART
    # Only the first date column is used as the time axis
    if date_cols:
        date_col = date_cols[0]
        for num_col in numeric_cols:
            candidates.append(ChartConfig(
                type="line",
                x_axis=date_col.key,
                y_axis=num_col.key,
                title=f"{num_col.label} over Time",
                description=f"Track {num_col.label} trends based on {date_col.label}.",
                score=90
            ))

    # 3. Rule: CATEGORY + VALUE = BAR (and PIE for a few non-negative slices)
    for cat_col in category_cols:
        unique_count = cat_col.stats.unique_count
        if unique_count is None or unique_count > CATEGORY_MAX_UNIQUE:
            continue

        for num_col in numeric_cols:
            min_value = num_col.stats.min
            if unique_count <= PIE_MAX_CATEGORIES and min_value is not None and min_value >= 0:
                candidates.append(ChartConfig(
                    type="pie",
                    x_axis=cat_col.key,
                    y_axis=num_col.key,
                    title=f"{num_col.label} Share by {cat_col.label}",
                    description=f"Part-of-whole view for {num_col.label}.",
                    score=75
                ))

            candidates.append(ChartConfig(
                type="bar",
                x_axis=cat_col.key,
                y_axis=num_col.key,
                title=f"{num_col.label} by {cat_col.label}",
                description=f"Compare {num_col.label} across different {cat_col.label}.",
                score=80
            ))

    # 4. Rule: NUMERIC + NUMERIC with |r| >= 0.3 = SCATTER
    for i in range(len(numeric_cols)):
        col_a = numeric_cols[i]
        for j in range(i + 1, len(numeric_cols)):
            col_b = numeric_cols[j]

            xs, ys = paired_values(data, col_a.key, col_b.key)
            correlation = calculate_correlation(xs, ys)
            strength_abs = abs(correlation)
            if strength_abs < CORRELATION_THRESHOLD:
                continue

            strength = "Strong" if strength_abs > STRONG_CORRELATION else "Moderate"
            direction = "positive" if correlation > 0 else "negative"

            candidates.append(ChartConfig(
                type="scatter",
                x_axis=col_a.key,
                y_axis=col_b.key,
                title=f"{col_a.label} vs {col_b.label}",
                description=f"{strength} {direction} correlation (r={correlation:.2f}).",
                score=70 + strength_abs * 30
            ))

            # 5. Rule: a third varying NUMERIC sizes the points = BUBBLE
            size_col = next(
                (c for c in numeric_cols
                 if c.key not in (col_a.key, col_b.key)
                 and c.stats.variance is not None and c.stats.variance > 0),
                None
            )
            if size_col:
                candidates.append(ChartConfig(
                    type="bubble",
                    x_axis=col_a.key,
                    y_axis=col_b.key,
                    size_axis=size_col.key,
                    title=f"Multivariate: {col_a.label} vs {col_b.label} vs {size_col.label}",
                    description=(
                        f"Complex system analysis: Relationship between {col_a.label} "
                        f"and {col_b.label}, sized by {size_col.label}."
                    ),
                    score=85 + strength_abs * 10
                ))

    # Sort by score DESC (stable, so ties keep rule order)
    candidates.sort(key=lambda c: c.score, reverse=True)

    seen_titles = set()
    unique_candidates = []
    for candidate in candidates:
        if candidate.title in seen_titles:
            continue
        seen_titles.add(candidate.title)
        unique_candidates.append(candidate)

    result = unique_candidates[:limit]
    logger.info(f"Generated {len(result)} recommendations from {len(candidates)} candidates")

    return result
