from __future__ import annotations
"""
Trend helpers shared by the aggregator and the dashboard
"""

def safe_delta_pct(current: int, previous: int) -> float:
    """
    Percentage change against a baseline window:
    - previous > 0 → standard percentage delta
    - empty baseline → 100.0 if anything happened now, else 0.0
    """
    if previous > 0:
        return round(((current - previous) / previous) * 100, 2)
    return 100.0 if current > 0 else 0.0
