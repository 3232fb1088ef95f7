from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.core.enums import RoleName
from app.database import Base, enable_sqlite_savepoints
from app.integrations.paystack_client import FakePaystackClient

# Import models so Base.metadata is populated for reflection/create_all.
import app.models  # noqa: F401
from app.principal import SYSTEM_PRINCIPAL, Principal
from app.services.booking_service import BookingService
from app.services.notification_service import NotificationService
from app.services.payment_gateway import PaymentGatewayAdapter
from tests.factories.booking_builders import create_companion, create_user, set_commission


@pytest.fixture(scope="session")
def _unit_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def unit_db(_unit_engine) -> Session:
    """
    Provide a session whose commits and rollbacks stay inside one outer transaction.

    Services commit and roll back freely; each call maps to a SAVEPOINT and
    the outer transaction is discarded after the test.
    """
    connection = _unit_engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def client_user(unit_db):
    return create_user(unit_db, role=RoleName.CLIENT, full_name="Bola Client")


@pytest.fixture
def companion_user(unit_db):
    return create_companion(unit_db, hourly_rate=Decimal("50.00"))


@pytest.fixture
def platform_commission(unit_db):
    return set_commission(unit_db, Decimal("15.00"))


@pytest.fixture
def client_principal(client_user) -> Principal:
    return Principal(user_id=client_user.id, role=RoleName.CLIENT)


@pytest.fixture
def companion_principal(companion_user) -> Principal:
    return Principal(user_id=companion_user.id, role=RoleName.COMPANION)


@pytest.fixture
def admin_principal() -> Principal:
    return Principal(user_id="admin-1", role=RoleName.ADMIN)


@pytest.fixture
def system_principal() -> Principal:
    return SYSTEM_PRINCIPAL


@pytest.fixture
def fake_paystack() -> FakePaystackClient:
    return FakePaystackClient()


@pytest.fixture
def gateway(fake_paystack) -> PaymentGatewayAdapter:
    return PaymentGatewayAdapter(fake_paystack, currency="NGN")


@pytest.fixture
def notification_service(unit_db) -> NotificationService:
    return NotificationService(unit_db)


@pytest.fixture
def booking_service(unit_db, gateway, notification_service) -> BookingService:
    return BookingService(
        unit_db,
        gateway=gateway,
        notification_service=notification_service,
        expiration_hours=24,
        callback_url="https://app.example.com/bookings/return",
    )
