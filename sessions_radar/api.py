from __future__ import annotations
import html
import threading
from contextlib import asynccontextmanager
from datetime import date
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from sessions_radar.aggregator import monthly_trend_pct, sum_metric_pairs
from sessions_radar.analytics_client import AnalyticsClient, build_default_client
from sessions_radar.cache_store import DailyCacheStore
from sessions_radar.config.date_windows import ALL_SITES_TOKEN
from sessions_radar.main import compute_snapshot, log_step, refresh_today
from sessions_radar.models import MetricPair, Snapshot
from sessions_radar.settings import settings
from sessions_radar.utils.windows import Clock


# -------------------------------------------------------------------------
# Snapshot state (readiness gate)
# -------------------------------------------------------------------------

class SnapshotState:
    """
    Holds the snapshot served by the HTTP layer.
    Not ready until the first aggregation succeeds; a failed aggregation is
    kept as `error` and reported through /ready. A day whose aggregation
    failed is not attempted again.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self.snapshot: Optional[Snapshot] = None
        self.error: Optional[str] = None
        self.refreshing = False
        self.failed_on: Optional[date] = None

    def begin_refresh(self, day: date) -> bool:
        """Claim the single refresh slot; False if one is running or `day` already failed"""
        with self._lock:
            if self.refreshing or self.failed_on == day:
                return False
            self.refreshing = True
            return True

    def publish(self, snapshot: Snapshot) -> None:
        with self._lock:
            self.snapshot = snapshot
            self.error = None
            self.refreshing = False
        self._ready.set()

    def fail(self, error: str, day: date) -> None:
        with self._lock:
            self.error = error
            self.failed_on = day
            self.refreshing = False

    def current(self) -> Optional[Snapshot]:
        with self._lock:
            return self.snapshot

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)


# -------------------------------------------------------------------------
# App factory
# -------------------------------------------------------------------------

def create_app(
    client_factory: Optional[Callable[[], AnalyticsClient]] = None,
    cache: Optional[DailyCacheStore] = None,
    clock: Optional[Clock] = None,
    max_workers: Optional[int] = None,
) -> FastAPI:
    clock = clock or Clock(settings.TIMEZONE)
    cache = cache or DailyCacheStore(settings.CACHE_FILE_PATH, clock)
    client_factory = client_factory or build_default_client
    max_workers = max_workers or settings.FETCH_MAX_WORKERS

    state = SnapshotState()
    client_holder: Dict[str, AnalyticsClient] = {}

    def get_client() -> AnalyticsClient:
        if "client" not in client_holder:
            client_holder["client"] = client_factory()
        return client_holder["client"]

    def regenerate(day: date) -> None:
        """Background aggregation run; failures are recorded, never raised into the loop"""
        try:
            snapshot = compute_snapshot(get_client(), cache, clock, max_workers)
        except Exception as e:
            log_step("PIPELINE", f"Aggregation FAILED for {day}: {e}", "ERROR")
            state.fail(str(e), day)
            return
        state.publish(snapshot)

    def schedule_regeneration(app: FastAPI) -> None:
        day = clock.today()
        if state.begin_refresh(day):
            app.state.executor.submit(regenerate, day)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the first aggregation without blocking the listener"""
        app.state.executor = ThreadPoolExecutor(max_workers=1)
        log_step("STARTUP", "Scheduling initial aggregation", "PROGRESS")
        schedule_regeneration(app)

        yield

        app.state.executor.shutdown(wait=False)

    app = FastAPI(
        title="Sessions Radar",
        description="Daily Google Analytics session totals across tracked properties.",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.snapshots = state

    allowed_origins = settings.ALLOWED_ORIGINS
    if allowed_origins:
        print(f"[STARTUP] CORS allowed_origins: {allowed_origins}")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["GET"],
            allow_headers=["*"],
        )

    def require_snapshot() -> Snapshot:
        snapshot = state.current()
        if snapshot is None:
            detail = "Snapshot not ready"
            if state.error:
                detail = f"Snapshot unavailable: {state.error}"
            raise HTTPException(status_code=503, detail=detail)

        # First request after midnight kicks off the next day's snapshot
        if snapshot.generated_on != clock.today():
            schedule_regeneration(app)
        return snapshot

    # -------------------------
    # Health
    # -------------------------

    @app.get("/health")
    def health_check():
        """Basic health check"""
        return {"status": "ok"}

    @app.get("/ready")
    def readiness():
        snapshot = state.current()
        if snapshot is None:
            raise HTTPException(status_code=503, detail=state.error or "Snapshot not ready")
        return {
            "status": "ready",
            "generated_on": snapshot.generated_on.isoformat() if snapshot.generated_on else None,
            "stale": snapshot.generated_on != clock.today(),
            "error": state.error,
            "from_cache": snapshot.from_cache,
            "sites": len(snapshot.sites),
        }

    # -------------------------
    # Dashboard
    # -------------------------

    @app.get("/", response_class=HTMLResponse)
    def dashboard():
        snapshot = require_snapshot()
        try:
            snapshot = refresh_today(get_client(), snapshot, clock, max_workers)
        except Exception as e:
            log_step("DASHBOARD", f"Today refresh failed, serving cached values: {e}", "WARNING")
        return HTMLResponse(render_dashboard(snapshot))

    # -------------------------
    # Stats
    # -------------------------

    @app.get("/stats")
    def get_stats(site: str = Query(...)):
        """Global sums for site=All, otherwise the first record named `site`"""
        snapshot = require_snapshot()

        if site == ALL_SITES_TOKEN:
            return snapshot.sums.model_dump()

        record = snapshot.find_record(site)
        if record is None:
            print(f"[STATS] Unknown site requested: {site}")
            raise HTTPException(status_code=404, detail="Site not found")
        return record.model_dump()

    return app


# -------------------------------------------------------------------------
# Rendering
# -------------------------------------------------------------------------

# Shows /stats for the selected site; loads "All" on page open
_STATS_SCRIPT = (
    "const site = document.getElementById('site');"
    "const out = document.getElementById('stats');"
    "const show = () => fetch('/stats?site=' + encodeURIComponent(site.value))"
    ".then(r => r.json()).then(d => { out.textContent = JSON.stringify(d, null, 2); });"
    "site.addEventListener('change', show);"
    "show();"
)


def _fmt_pct(pct: float) -> str:
    return f"{pct:+.1f}%"


def _row(cells: List[str], tag: str = "td") -> str:
    return "<tr>" + "".join(f"<{tag}>{c}</{tag}>" for c in cells) + "</tr>"


def render_dashboard(snapshot: Snapshot) -> str:
    live_today: Dict[str, MetricPair] = {r.property.id: r.today for r in snapshot.today}

    rows = [_row(["Site", "Today", "Today organic", "Yesterday", "Yesterday organic",
                  "30 days", "30 days organic", "Trend", "Organic trend"], tag="th")]
    for record in snapshot.aggregate:
        today = live_today.get(record.property.id, record.today)
        trend = monthly_trend_pct(record)
        rows.append(_row([
            html.escape(record.property.name),
            str(today.total),
            str(today.organic),
            str(record.yesterday.total),
            str(record.yesterday.organic),
            str(record.monthly.total),
            str(record.monthly.organic),
            _fmt_pct(trend["total"]),
            _fmt_pct(trend["organic"]),
        ]))

    today_sum = sum_metric_pairs(live_today.values()) if live_today else snapshot.sums.today
    sums = snapshot.sums
    rows.append(_row([
        "<strong>All</strong>",
        str(today_sum.total),
        str(today_sum.organic),
        str(sums.yesterday.total),
        str(sums.yesterday.organic),
        str(sums.monthly.total),
        str(sums.monthly.organic),
        "",
        "",
    ]))

    options = "".join(
        f'<option value="{html.escape(s.name, quote=True)}">{html.escape(s.name)}</option>'
        for s in snapshot.sites
    )
    generated = snapshot.generated_on.isoformat() if snapshot.generated_on else ""

    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\"><title>Sessions Radar</title></head><body>"
        f"<h1>Sessions Radar</h1><p>Data for {generated}</p>"
        f"<select id=\"site\"><option value=\"{ALL_SITES_TOKEN}\">{ALL_SITES_TOKEN}</option>{options}</select>"
        "<pre id=\"stats\"></pre>"
        f"<table>{''.join(rows)}</table>"
        f"<script>{_STATS_SCRIPT}</script>"
        "</body></html>"
    )


app = create_app()


def serve():
    """Console entry point: run the dashboard under uvicorn"""
    import uvicorn

    uvicorn.run("sessions_radar.api:app", host=settings.HOST, port=settings.PORT)
