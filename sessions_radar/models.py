from __future__ import annotations
"""
Canonical data models for session metrics.
Shared by the fetcher, the daily cache file and the HTTP responses.
"""

from datetime import date
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class Property(BaseModel):
    """A tracked web property; id is its default view (profile) id"""
    name: str
    id: str


class MetricPair(BaseModel):
    total: int = Field(default=0, ge=0)
    organic: int = Field(default=0, ge=0)

    @field_validator("total", "organic", mode="before")
    @classmethod
    def coerce_count(cls, value):
        # Reporting API totals arrive as strings ("123")
        if isinstance(value, str):
            return int(value.strip() or 0)
        return value


class MonthlyMetrics(BaseModel):
    """Trailing 30 days plus the 30 days before, for trend comparison"""
    total: int = Field(default=0, ge=0)
    improvement_total: int = Field(default=0, ge=0)
    organic: int = Field(default=0, ge=0)
    improvement_organic: int = Field(default=0, ge=0)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_count(cls, value):
        if isinstance(value, str):
            return int(value.strip() or 0)
        return value


class PropertyRecord(BaseModel):
    property: Property
    today: MetricPair
    yesterday: MetricPair
    monthly: MonthlyMetrics


class TodayRecord(BaseModel):
    property: Property
    today: MetricPair


class Sums(BaseModel):
    today: MetricPair = Field(default_factory=MetricPair)
    yesterday: MetricPair = Field(default_factory=MetricPair)
    monthly: MetricPair = Field(default_factory=MetricPair)


class Snapshot(BaseModel):
    """
    Everything the serving layer needs.
    Only `aggregate` is persisted; sums and sites are derived from it and
    `today` is recomputed on every run.
    """
    aggregate: List[PropertyRecord]
    today: List[TodayRecord] = Field(default_factory=list)
    sums: Sums = Field(default_factory=Sums)
    sites: List[Property] = Field(default_factory=list)
    generated_on: Optional[date] = None
    from_cache: bool = False

    def find_record(self, site_name: str) -> Optional[PropertyRecord]:
        """First record whose property name matches, or None"""
        for record in self.aggregate:
            if record.property.name == site_name:
                return record
        return None
