"""Background thread that runs the sweep on an interval."""

import logging
import threading

from vpn_sales.notifier import Notifier
from vpn_sales.services.sweep_coordinator import SweepCoordinator

logger = logging.getLogger(__name__)


class SweepScheduler(threading.Thread):
    """Polling worker that opens a fresh session for every sweep."""

    def __init__(
        self,
        *,
        interval: float,
        session_factory,
        notifier: Notifier | None = None,
        settings=None,
    ) -> None:
        super().__init__(daemon=True, name="sweep-scheduler")
        self.interval = interval
        self.session_factory = session_factory
        self.notifier = notifier
        self.settings = settings
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:  # pragma: no cover - background thread
        logger.info("sweep scheduler started (every %ss)", self.interval)
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self.interval)
        logger.info("sweep scheduler stopped")

    def tick(self):
        """Run one sweep; never raises."""
        try:
            with self.session_factory() as db:
                return SweepCoordinator(
                    db, notifier=self.notifier, settings=self.settings
                ).run()
        except Exception:
            logger.exception("sweep tick failed")
            return None
