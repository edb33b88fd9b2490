"""
Shared test fixtures.

Tests run against their own SQLite file with the same
BEGIN IMMEDIATE locking as production, plus fakes for the
provisioner and the notifier.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from vpn_sales.api.deps import get_notifier, get_provisioner
from vpn_sales.config import Settings, get_settings
from vpn_sales.main import app
from vpn_sales.models.base import Base, get_db, enable_sqlite_write_locking
from vpn_sales.provisioning import Provisioner, ProvisionerError
from vpn_sales.schemas.order import OrderCreate
from vpn_sales.schemas.plan import PlanTerms
from vpn_sales.services.order_service import OrderService


# File-based SQLite so that threads in the concurrency tests
# each get their own connection to the same database.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
enable_sqlite_write_locking(engine)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class FakeProvisioner(Provisioner):
    """Returns a predictable config; fails the first `fail_times` calls."""

    def __init__(self, fail_times=0, config_template="vless://{username}@{server}"):
        self.fail_times = fail_times
        self.config_template = config_template
        self.calls = []

    def provision(self, username, plan, server_ref, expires_at):
        self.calls.append(username)
        if len(self.calls) <= self.fail_times:
            raise ProvisionerError("panel unreachable")
        return self.config_template.format(username=username, server=server_ref)


class RecordingNotifier:
    """Collects sweep events; can be told to fail on one kind."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.expiring = []
        self.expired_ids = []

    def expiring_soon(self, service):
        if self.fail_on == "expiring_soon":
            raise RuntimeError("chat API down")
        self.expiring.append(service.id)

    def expired(self, service):
        if self.fail_on == "expired":
            raise RuntimeError("chat API down")
        self.expired_ids.append(service.id)


@pytest.fixture(autouse=True)
def setup_database():
    """Every test starts from an empty schema."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def session_factory():
    return TestSessionLocal


@pytest.fixture
def settings():
    """Settings with no retry delay and a low top-up minimum."""
    s = Settings()
    s.PAYMENT_WINDOW_MINUTES = 15
    s.CHARGE_WINDOW_MINUTES = 15
    s.REVIEW_WINDOW_HOURS = 24
    s.EXPIRY_WARNING_HOURS = 24
    s.PROVISION_MAX_ATTEMPTS = 3
    s.PROVISION_RETRY_DELAY = 0
    s.MIN_CHARGE_AMOUNT = Decimal("1000")
    s.MAX_CHARGE_AMOUNT = Decimal("5000000")
    s.USERNAME_PREFIX = "TEST"
    return s


@pytest.fixture
def provisioner():
    return FakeProvisioner()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db_session, provisioner, notifier, settings):
    """
    Provide a test client with the test database.

    get_db is overridden so the app uses our test session, and
    the provisioner, notifier and settings are replaced with
    test versions.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_provisioner] = lambda: provisioner
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_service(db_session, provisioner, settings):
    """
    Factory that sells and provisions a 30-day service.

    The service is approved at `approved_at`, so it expires
    30 days later.
    """
    def _make(account_id=1001, approved_at=None, duration_days=30):
        orders = OrderService(db_session, provisioner=provisioner, settings=settings)
        order = orders.create_order(OrderCreate(
            account_id=account_id,
            plan=PlanTerms(
                plan_id="plan_test",
                name="Test plan",
                price=Decimal("25000"),
                duration_days=duration_days,
                data_limit_gb=50,
            ),
            server_ref="server_main",
        ), now=approved_at)
        orders.submit_evidence(order.id, "receipt", now=approved_at)
        service = orders.approve(order.id, now=approved_at)
        db_session.commit()
        return service

    return _make
