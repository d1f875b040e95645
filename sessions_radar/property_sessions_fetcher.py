"""
Property Sessions Fetcher

Per-property session counts for the dashboard windows.

API Cost: 8 report calls per property for a full record, 2 for a today refresh
"""

from sessions_radar.analytics_client import AnalyticsClient
from sessions_radar.models import MetricPair, MonthlyMetrics, Property, PropertyRecord, TodayRecord
from sessions_radar.utils.windows import DateRange, DateWindows


class PropertySessionsFetcher:
    """Builds PropertyRecord / TodayRecord for a single property"""

    def __init__(self, client: AnalyticsClient):
        self.client = client

    def _sessions(self, prop: Property, window: DateRange, organic: bool = False) -> int:
        return self.client.fetch_sessions(prop.id, window.start, window.end, organic)

    def _pair(self, prop: Property, window: DateRange) -> MetricPair:
        return MetricPair(
            total=self._sessions(prop, window),
            organic=self._sessions(prop, window, organic=True),
        )

    def fetch_record(self, prop: Property, windows: DateWindows) -> PropertyRecord:
        """
        Full record for one property. The calls are sequential; any failure
        propagates and the record is not produced.
        """
        print(f"[FETCH] Sessions: {prop.name} ({prop.id})")

        return PropertyRecord(
            property=prop,
            today=self._pair(prop, windows.today),
            yesterday=self._pair(prop, windows.yesterday),
            monthly=MonthlyMetrics(
                total=self._sessions(prop, windows.monthly),
                improvement_total=self._sessions(prop, windows.previous_monthly),
                organic=self._sessions(prop, windows.monthly, organic=True),
                improvement_organic=self._sessions(prop, windows.previous_monthly, organic=True),
            ),
        )

    def fetch_today(self, prop: Property, windows: DateWindows) -> TodayRecord:
        return TodayRecord(property=prop, today=self._pair(prop, windows.today))
