"""Duplicate artikul aggregation for Ozon reports.

Ozon may split one product over several rows (variants, cells). Rows are
merged per artikul in one pass, with an explicit rule for every field:
counts are summed, rates are recomputed from the summed counts (never
averaged), prices and DRR are weighted means and state fields (stock,
rating, reviews) keep the latest known value.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, TypeVar

import structlog

from report_ingestion.models.report_row import ParsedRow
from report_ingestion.utils.numbers import ClampCallback, clamp_fraction, safe_divide

logger = structlog.get_logger(__name__)

RowT = TypeVar("RowT", bound=ParsedRow)


class MergeRule(Enum):
    """How a field of two rows with the same artikul is combined."""
    KEY = "key"
    SUM = "sum"
    SUM_OPTIONAL = "sum_optional"
    RECOMPUTE_CTR = "recompute_ctr"
    RECOMPUTE_CR = "recompute_cr"
    TRAFFIC_WEIGHTED_MEAN = "traffic_weighted_mean"
    REVENUE_WEIGHTED_MEAN = "revenue_weighted_mean"
    LATEST = "latest"


MERGE_RULES: Dict[str, MergeRule] = {
    "artikul": MergeRule.KEY,
    "impressions": MergeRule.SUM,
    "visits": MergeRule.SUM,
    "add_to_cart": MergeRule.SUM,
    "orders": MergeRule.SUM,
    "revenue": MergeRule.SUM_OPTIONAL,
    "ctr": MergeRule.RECOMPUTE_CTR,
    "cr_to_cart": MergeRule.RECOMPUTE_CR,
    "price_avg": MergeRule.TRAFFIC_WEIGHTED_MEAN,
    "drr": MergeRule.REVENUE_WEIGHTED_MEAN,
    "stock_end": MergeRule.LATEST,
    "rating": MergeRule.LATEST,
    "reviews_count": MergeRule.LATEST,
    "delivery_avg_hours": MergeRule.LATEST,
}


def _weighted_mean(
    existing: float,
    existing_weight: float,
    incoming: float,
    incoming_weight: float,
) -> float:
    total_weight = existing_weight + incoming_weight
    return (existing * existing_weight + incoming * incoming_weight) / total_weight


def merge_traffic_weighted(
    field: str,
    existing: Dict[str, Any],
    incoming: Dict[str, Any],
) -> Optional[float]:
    """Visits-weighted mean, then impressions-weighted, then plain replacement."""
    old, new = existing[field], incoming[field]
    if new is None:
        return old
    if old is None:
        return new

    for weight in ("visits", "impressions"):
        if existing[weight] + incoming[weight] > 0:
            return _weighted_mean(old, existing[weight], new, incoming[weight])
    return new


def merge_revenue_weighted(
    field: str,
    existing: Dict[str, Any],
    incoming: Dict[str, Any],
) -> Optional[float]:
    """Revenue-weighted mean when both revenues are known, else first known value."""
    old, new = existing[field], incoming[field]
    if old is None or new is None:
        return old if old is not None else new

    old_revenue, new_revenue = existing["revenue"], incoming["revenue"]
    if old_revenue is not None and new_revenue is not None and old_revenue + new_revenue > 0:
        return _weighted_mean(old, old_revenue, new, new_revenue)
    return old


def merge_rows(
    existing: Dict[str, Any],
    incoming: Dict[str, Any],
    on_clamp: Optional[ClampCallback] = None,
) -> Dict[str, Any]:
    """Merge two rows (as dicts) of the same artikul, field by field."""
    merged: Dict[str, Any] = {}

    for field in existing:
        rule = MERGE_RULES.get(field)
        if rule is None:
            raise KeyError(f"No merge rule for field '{field}'")

        if rule is MergeRule.KEY:
            merged[field] = existing[field]
        elif rule is MergeRule.SUM:
            merged[field] = existing[field] + incoming[field]
        elif rule is MergeRule.SUM_OPTIONAL:
            if existing[field] is None and incoming[field] is None:
                merged[field] = None
            else:
                merged[field] = (existing[field] or 0) + (incoming[field] or 0)
        elif rule is MergeRule.TRAFFIC_WEIGHTED_MEAN:
            merged[field] = merge_traffic_weighted(field, existing, incoming)
        elif rule is MergeRule.REVENUE_WEIGHTED_MEAN:
            merged[field] = merge_revenue_weighted(field, existing, incoming)
        elif rule is MergeRule.LATEST:
            merged[field] = incoming[field] if incoming[field] is not None else existing[field]

    # rates depend on the merged counts
    for field in existing:
        rule = MERGE_RULES[field]
        if rule is MergeRule.RECOMPUTE_CTR:
            merged[field] = clamp_fraction(
                safe_divide(merged["visits"], merged["impressions"]), on_clamp
            )
        elif rule is MergeRule.RECOMPUTE_CR:
            merged[field] = clamp_fraction(
                safe_divide(merged["add_to_cart"], merged["visits"]), on_clamp
            )

    return merged


def aggregate_duplicates(
    rows: Sequence[RowT],
    on_clamp: Optional[ClampCallback] = None,
) -> Tuple[List[RowT], int]:
    """Merge rows sharing an artikul, keeping first-seen order.

    Args:
        rows: Parsed rows of one report
        on_clamp: Called when a recomputed rate had to be forced into 0..1

    Returns:
        (aggregated rows, number of rows merged into an earlier one)
    """
    merged: Dict[str, Dict[str, Any]] = {}
    row_types: Dict[str, type] = {}
    aggregated_count = 0

    for row in rows:
        data = row.model_dump()
        artikul = data["artikul"]
        if artikul in merged:
            merged[artikul] = merge_rows(merged[artikul], data, on_clamp)
            aggregated_count += 1
        else:
            merged[artikul] = data
            row_types[artikul] = type(row)

    if aggregated_count:
        logger.info(
            "rows_aggregated",
            rows_in=len(rows),
            rows_out=len(merged),
            duplicates=aggregated_count,
        )

    result = [row_types[artikul].model_validate(data) for artikul, data in merged.items()]
    return result, aggregated_count
