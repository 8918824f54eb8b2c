"""
Correlation, group-by aggregation, sampling and binning helpers.

These keep chart series within display-friendly sizes. All functions are
pure except sample_data, which is random by design.
"""
import math
import random
import logging
import numpy as np
from typing import List, Dict, Any, Optional, Sequence
from chartwise.core.schemas import HistogramBin

logger = logging.getLogger(__name__)

AGGREGATION_METHODS = ("mean", "sum", "count", "median")


def calculate_correlation(x_values: Sequence[float], y_values: Sequence[float]) -> float:
    """
    Pearson product-moment correlation.

    Returns 0 when the series differ in length, are empty, or either one is
    constant.
    """
    n = len(x_values)
    if n != len(y_values) or n == 0:
        return 0.0

    x = np.asarray(x_values, dtype=float)
    y = np.asarray(y_values, dtype=float)
    x_diff = x - x.mean()
    y_diff = y - y.mean()

    denominator = math.sqrt(float(np.sum(x_diff * x_diff)) * float(np.sum(y_diff * y_diff)))
    if denominator == 0 or not math.isfinite(denominator):
        return 0.0

    return float(np.sum(x_diff * y_diff)) / denominator


def paired_values(rows: Sequence[Dict[str, Any]], x_key: str, y_key: str):
    """Values of two columns from the rows where both are present."""
    xs, ys = [], []
    for row in rows:
        x, y = row.get(x_key), row.get(y_key)
        if x is None or y is None:
            continue
        xs.append(x)
        ys.append(y)
    return xs, ys


def _median(values: List[float]) -> float:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def aggregate_data(
    rows: Sequence[Dict[str, Any]],
    group_key: str,
    metric_key: str,
    method: str = "mean",
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Group rows by one column and reduce another.

    Rows with a missing group or metric are skipped. 'count' is the group
    size whatever the metric holds; the other methods ignore values that
    are not numbers. An unknown method reduces every group to 0.

    Args:
        rows: Row records
        group_key: Column to group by (X-axis)
        metric_key: Column to reduce (Y-axis)
        method: 'mean', 'sum', 'count' or 'median'
        limit: Optional cap on the number of groups kept

    Returns:
        List of {group_key: group, metric_key: value}, highest value first
    """
    groups: Dict[Any, List[Any]] = {}

    for row in rows:
        group = row.get(group_key)
        value = row.get(metric_key)
        if group is None or value is None:
            continue
        groups.setdefault(group, []).append(value)

    if method not in AGGREGATION_METHODS:
        logger.warning(f"Unknown aggregation method '{method}', using 0 for every group")

    result = []
    for group, values in groups.items():
        if method == "count":
            aggregated = len(values)
        elif method in AGGREGATION_METHODS:
            numbers = [n for n in (_to_number(v) for v in values) if n is not None]
            if not numbers:
                continue
            if method == "sum":
                aggregated = sum(numbers)
            elif method == "mean":
                aggregated = sum(numbers) / len(numbers)
            else:
                aggregated = _median(numbers)
        else:
            aggregated = 0
        result.append({group_key: group, metric_key: aggregated})

    result.sort(key=lambda item: item[metric_key], reverse=True)

    if limit and limit > 0 and len(result) > limit:
        return result[:limit]

    return result


def sample_data(
    rows: Sequence[Dict[str, Any]],
    limit: int,
    rng: Optional[random.Random] = None
) -> Sequence[Dict[str, Any]]:
    """
    Draw `limit` distinct rows uniformly at random.

    Rows come back in the order they were drawn, not in their original
    order. Datasets that already fit are returned as-is.
    """
    if not rows or len(rows) <= limit:
        return rows

    rng = rng or random.Random()
    total = len(rows)
    drawn = set()
    order = []

    while len(order) < limit:
        index = rng.randrange(total)
        if index in drawn:
            continue
        drawn.add(index)
        order.append(index)

    logger.debug(f"Sampled {limit} of {total} rows")
    return [rows[i] for i in order]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def histogram_bins(values: Sequence[Optional[float]], bins: int = 10) -> List[HistogramBin]:
    """
    Equal-width frequency bins between the smallest and largest value.

    The last bin is closed so the maximum is counted. A series with no
    spread collapses to a single bin.
    """
    clean = [float(v) for v in values if v is not None]
    if not clean or bins < 1:
        return []

    low, high = min(clean), max(clean)
    if high == low:
        return [HistogramBin(label=f"{_round_half_up(low)}", low=low, high=high, count=len(clean))]

    step = (high - low) / bins
    counts = [0] * bins
    for value in clean:
        index = int((value - low) // step)
        counts[min(index, bins - 1)] += 1

    result = []
    for i, count in enumerate(counts):
        bin_low = low + i * step
        bin_high = bin_low + step
        result.append(HistogramBin(
            label=f"{_round_half_up(bin_low)}-{_round_half_up(bin_high)}",
            low=bin_low,
            high=bin_high,
            count=count
        ))
    return result
