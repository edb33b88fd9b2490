"""
Tests for the background sweep scheduler.
"""

from datetime import datetime, timedelta

from vpn_sales.models.enums import ServiceStatus
from vpn_sales.scheduler import SweepScheduler
from vpn_sales.services.service_lifecycle import ServiceLifecycle


class TestSweepScheduler:

    def test_tick_runs_sweep_in_fresh_session(
        self, db_session, session_factory, settings, notifier, make_service
    ):
        service = make_service(approved_at=datetime.utcnow() - timedelta(days=31))
        service_id = service.id
        db_session.close()

        scheduler = SweepScheduler(
            interval=60,
            session_factory=session_factory,
            notifier=notifier,
            settings=settings,
        )
        report = scheduler.tick()

        assert report.expired_services == [service_id]
        assert notifier.expired_ids == [service_id]
        assert ServiceLifecycle(db_session, settings).get_service(service_id).status == ServiceStatus.EXPIRED

    def test_tick_never_raises(self, settings):
        def broken_factory():
            raise RuntimeError("database gone")

        scheduler = SweepScheduler(interval=60, session_factory=broken_factory, settings=settings)
        assert scheduler.tick() is None

    def test_stop(self, session_factory, settings):
        scheduler = SweepScheduler(interval=60, session_factory=session_factory, settings=settings)

        assert not scheduler.stopped
        scheduler.stop()
        assert scheduler.stopped
