from __future__ import annotations
"""
Google Analytics API Client
Handles service-account authorization, property discovery and session reports
for a single analytics account
"""

import threading
from typing import List, Dict, Any, Optional

import httplib2
import google_auth_httplib2
from google.oauth2 import service_account
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from sessions_radar.auth.token_model import ServiceAccountKey
from sessions_radar.config.date_windows import SESSIONS_METRIC, ORGANIC_FILTER
from sessions_radar.models import Property


class AuthError(Exception):
    """Raised when the service account cannot be authorized"""
    pass


class AnalyticsQueryError(Exception):
    """Raised when a management or reporting call fails"""
    pass


class AnalyticsClient:
    """Client for interacting with the Google Analytics APIs for one account"""

    def __init__(self, key: ServiceAccountKey, account_id: str, timeout: Optional[float] = None):
        self.key = key
        self.account_id = account_id
        self.timeout = timeout
        self.credentials = self._load_credentials()
        # discovery services wrap httplib2, which is not thread-safe
        self._local = threading.local()

    def _load_credentials(self) -> service_account.Credentials:
        try:
            return service_account.Credentials.from_service_account_info(
                self.key.to_info(), scopes=self.key.scopes
            )
        except (ValueError, GoogleAuthError) as e:
            raise AuthError(f"Invalid service account credentials for {self.key.client_email}: {e}") from e

    # ============================================================
    # 🔁 AUTHORIZATION
    # ============================================================

    def authorize(self) -> None:
        """Exchange the service-account JWT for an access token"""
        try:
            self.credentials.refresh(Request())
        except GoogleAuthError as e:
            print(f"[AUTH ERROR] [ACCOUNT: {self.account_id}] Authorization failed: {e}")
            raise AuthError(f"Failed to authorize service account {self.key.client_email}: {e}") from e

        print(f"[AUTH] [ACCOUNT: {self.account_id}] Service account authorized")

    def _build(self, service_name: str, version: str):
        if self.timeout is None:
            return build(service_name, version, credentials=self.credentials, cache_discovery=False)

        http = google_auth_httplib2.AuthorizedHttp(
            self.credentials, http=httplib2.Http(timeout=self.timeout)
        )
        return build(service_name, version, http=http, cache_discovery=False)

    def _management(self):
        service = getattr(self._local, "management", None)
        if service is None:
            service = self._local.management = self._build("analytics", "v3")
        return service

    def _reporting(self):
        service = getattr(self._local, "reporting", None)
        if service is None:
            service = self._local.reporting = self._build("analyticsreporting", "v4")
        return service

    # ============================================================
    # 📊 PROPERTY LISTING
    # ============================================================

    def fetch_properties(self) -> List[Dict[str, Any]]:
        try:
            result = self._management().management().webproperties().list(
                accountId=self.account_id
            ).execute()
        except (HttpError, httplib2.HttpLib2Error, OSError) as e:
            print(f"[ANALYTICS ERROR] [ACCOUNT: {self.account_id}] Property listing failed: {e}")
            raise AnalyticsQueryError(f"Failed to list web properties for account {self.account_id}: {e}") from e

        items = result.get("items", [])
        print(f"[ANALYTICS] [ACCOUNT: {self.account_id}] Fetched {len(items)} web properties")
        return items

    def filter_properties(self, items: List[Dict[str, Any]]) -> List[Property]:
        """Keep only web properties that have a default view to report on"""
        properties = [
            Property(name=item.get("name", ""), id=str(item["defaultProfileId"]))
            for item in items
            if item.get("defaultProfileId")
        ]

        excluded_count = len(items) - len(properties)

        print(
            f"[ANALYTICS] [ACCOUNT: {self.account_id}] "
            f"Kept {len(properties)} properties "
            f"(excluded {excluded_count} without a default view)"
        )

        return properties

    def list_properties(self) -> List[Property]:
        self.authorize()
        return self.filter_properties(self.fetch_properties())

    # ============================================================
    # 📈 SESSION REPORTS
    # ============================================================

    def fetch_sessions(self, view_id: str, start_date: str, end_date: str, organic_only: bool = False) -> int:
        """
        Total ga:sessions for one view over one date range.

        Args:
            view_id: default view (profile) id of the property
            start_date: YYYY-MM-DD, inclusive
            end_date: YYYY-MM-DD, inclusive
            organic_only: restrict to ga:medium==organic

        Returns:
            Session count, 0 when the report has no data
        """
        if not view_id:
            raise ValueError("view_id must be non-empty")
        if start_date > end_date:
            raise ValueError(f"start_date {start_date} is after end_date {end_date}")

        request_body = {
            "reportRequests": [{
                "viewId": view_id,
                "dateRanges": [{"startDate": start_date, "endDate": end_date}],
                "metrics": [{"expression": SESSIONS_METRIC}],
                "filtersExpression": ORGANIC_FILTER if organic_only else "",
            }]
        }

        try:
            response = self._reporting().reports().batchGet(body=request_body).execute()
        except (HttpError, httplib2.HttpLib2Error, OSError) as e:
            print(f"[ANALYTICS ERROR] [VIEW: {view_id}] Report {start_date}..{end_date} failed: {e}")
            raise AnalyticsQueryError(f"Failed to fetch sessions for view {view_id}: {e}") from e

        return extract_session_total(response)


def extract_session_total(response: Dict[str, Any]) -> int:
    """Pull the single sessions total out of a batchGet response"""
    reports = response.get("reports") or []
    if not reports:
        return 0

    totals = reports[0].get("data", {}).get("totals") or []
    if not totals or not totals[0].get("values"):
        return 0

    return int(totals[0]["values"][0])


def build_default_client() -> AnalyticsClient:
    from sessions_radar.settings import settings

    key = ServiceAccountKey(client_email=settings.CLIENT_EMAIL, private_key=settings.PRIVATE_KEY)
    return AnalyticsClient(key, settings.ACCOUNT_ID, timeout=settings.REQUEST_TIMEOUT_SECONDS)
