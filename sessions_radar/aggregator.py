"""Fold per-property records into global sums and the site list."""

from typing import Dict, Iterable, List

from sessions_radar.models import MetricPair, Property, PropertyRecord, Sums
from sessions_radar.utils.metrics import safe_delta_pct


def fold_sums(records: Iterable[PropertyRecord]) -> Sums:
    """
    Field-wise integer sum of today / yesterday / monthly (total, organic),
    seeded at zero. The improvement_* fields are not summed.
    """
    sums = Sums()
    for record in records:
        sums.today.total += record.today.total
        sums.today.organic += record.today.organic
        sums.yesterday.total += record.yesterday.total
        sums.yesterday.organic += record.yesterday.organic
        sums.monthly.total += record.monthly.total
        sums.monthly.organic += record.monthly.organic
    return sums


def project_sites(records: Iterable[PropertyRecord]) -> List[Property]:
    return [Property(name=r.property.name, id=r.property.id) for r in records]


def monthly_trend_pct(record: PropertyRecord) -> Dict[str, float]:
    """Trailing 30 days against the 30 days before, for total and organic"""
    monthly = record.monthly
    return {
        "total": safe_delta_pct(monthly.total, monthly.improvement_total),
        "organic": safe_delta_pct(monthly.organic, monthly.improvement_organic),
    }


def sum_metric_pairs(pairs: Iterable[MetricPair]) -> MetricPair:
    result = MetricPair()
    for pair in pairs:
        result.total += pair.total
        result.organic += pair.organic
    return result
