# handsup/services/warning_aggregator.py
# Periodically refreshed snapshot of hazard warnings, queried by location and severity

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple

import httpx
import structlog

from handsup.models.campsite import Coordinate
from handsup.models.warning import EmergencyWarning, WarningSeverity
from handsup.services.warning_feeds import FeedErrorKind, WarningFeed, WarningFeedError
from handsup.utils.haversine import within_radius

logger = structlog.get_logger(__name__)

Snapshot = Tuple[EmergencyWarning, ...]
Subscriber = Callable[[Snapshot], None]


class WarningAggregator:
    """Merges every configured feed into one warning snapshot.

    A successful refresh replaces the snapshot wholesale. A failed one keeps
    the previous snapshot object and records ``error_message``/``last_error``
    instead, so readers keep getting the last good data.

    Refreshes are not serialized against each other: if a timer refresh and a
    manual one overlap, whichever finishes last wins.
    """

    def __init__(
        self,
        feeds: Sequence[WarningFeed],
        client: Optional[httpx.AsyncClient] = None,
        refresh_interval: float = 300.0,
        fetch_timeout: float = 10.0,
        user_agent: str = "HandsUpSOS",
    ):
        self.feeds = list(feeds)
        self.refresh_interval = refresh_interval
        self.fetch_timeout = fetch_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=fetch_timeout,
            headers={"User-Agent": user_agent},
            follow_redirects=True,
        )

        self._warnings: Snapshot = ()
        self.last_updated: Optional[datetime] = None
        self.error_message: Optional[str] = None
        self.last_error: Optional[FeedErrorKind] = None
        self.is_loading = False

        self._task: Optional[asyncio.Task] = None
        self._subscribers: List[Subscriber] = []

    @property
    def active_warnings(self) -> Snapshot:
        return self._warnings

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    async def _fetch_all(self) -> List[EmergencyWarning]:
        tasks = [asyncio.create_task(feed.fetch(self._client)) for feed in self.feeds]
        try:
            batches = await asyncio.gather(*tasks)
        except BaseException:
            # One feed failing abandons the refresh; the others must not outlive it
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return [warning for batch in batches for warning in batch]

    async def refresh(self) -> bool:
        """Fetch every feed and swap in the result.

        Returns True on success. Never raises for feed problems; they end up
        in ``error_message`` and ``last_error``.
        """
        self.is_loading = True
        try:
            warnings = await asyncio.wait_for(self._fetch_all(), timeout=self.fetch_timeout)
        except WarningFeedError as e:
            self._record_failure(e.kind, e.message)
            return False
        except asyncio.TimeoutError:
            self._record_failure(FeedErrorKind.NETWORK, f"Warning refresh timed out after {self.fetch_timeout:g}s")
            return False
        finally:
            self.is_loading = False

        self._warnings = tuple(warnings)
        self.last_updated = datetime.now(timezone.utc)
        self.error_message = None
        self.last_error = None
        logger.info("warnings_refreshed", count=len(self._warnings))
        self._notify()
        return True

    def _record_failure(self, kind: FeedErrorKind, message: str) -> None:
        self.error_message = message
        self.last_error = kind
        logger.warning("warnings_refresh_failed", kind=kind.value, error=message, stale_count=len(self._warnings))

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    async def _run_periodic(self, refresh_first: bool) -> None:
        if refresh_first:
            await self.refresh()
        while True:
            await asyncio.sleep(self.refresh_interval)
            await self.refresh()

    def start(self, refresh_first: bool = True) -> None:
        """Start the refresh timer on the running event loop. Calling it twice is harmless."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run_periodic(refresh_first))
        logger.info("warning_refresh_started", interval_seconds=self.refresh_interval)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._owns_client:
            await self._client.aclose()
        logger.info("warning_refresh_stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._warnings)
            except Exception:
                logger.exception("warning_subscriber_failed")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def warnings_near(self, coordinate: Coordinate, radius_km: float = 100.0) -> List[EmergencyWarning]:
        """Warnings within ``radius_km``; warnings without coordinates always count as near."""
        return [
            warning for warning in self._warnings
            if warning.coordinates is None or within_radius(
                coordinate.latitude, coordinate.longitude,
                warning.coordinates.latitude, warning.coordinates.longitude,
                radius_km,
            )
        ]

    def warnings_at_or_above(self, severity: WarningSeverity) -> List[EmergencyWarning]:
        return [w for w in self._warnings if w.severity >= severity]

    def critical_warnings(self) -> List[EmergencyWarning]:
        return self.warnings_at_or_above(WarningSeverity.SEVERE)
