# backend/tests/conftest.py
"""
Pytest configuration.

Every test gets a fresh in-memory SQLite database. The FastAPI app is wired
to it through ``app.dependency_overrides`` and stores receipts under the
test's tmp_path.
"""

from datetime import date, timedelta
from decimal import Decimal
import os

# Set before any app imports so settings never point at a real database.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RECEIPT_STORAGE_BACKEND", "none")
os.environ.setdefault("PROMETHEUS_ENABLED", "true")

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies.database import get_db
from app.api.dependencies.services import get_receipt_storage_dep
from app.auth import create_access_token
from app.core.enums import BookingStatus, PaymentStatus, RoleName
from app.database import Base
from app.domain.policies import Actor
from app.main import app
from app.models import Payment, Plan, Tour, TourBooking, User
from app.models.booking import compute_booking_amount
from app.services.receipt_storage import LocalReceiptStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture(scope="function")
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine):
    """Create a new database session for each test."""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def receipt_storage(tmp_path) -> LocalReceiptStorage:
    return LocalReceiptStorage(str(tmp_path / "storage"))


@pytest.fixture(scope="function")
def client(db: Session, receipt_storage: LocalReceiptStorage):
    """Create a test client with the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_receipt_storage_dep] = lambda: receipt_storage

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


def _create_user(db: Session, name: str, email: str, role: RoleName) -> User:
    user = User(name=name, email=email, phone="+15550100", role=role.value)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_user(db: Session) -> User:
    return _create_user(db, "Ada Admin", "admin@example.com", RoleName.ADMIN)


@pytest.fixture
def guide_user(db: Session) -> User:
    return _create_user(db, "Gus Guide", "guide@example.com", RoleName.GUIDE)


@pytest.fixture
def other_guide(db: Session) -> User:
    return _create_user(db, "Gia Guide", "guide2@example.com", RoleName.GUIDE)


@pytest.fixture
def tourist_user(db: Session) -> User:
    return _create_user(db, "Tara Tourist", "tourist@example.com", RoleName.TOURIST)


@pytest.fixture
def other_tourist(db: Session) -> User:
    return _create_user(db, "Tom Tourist", "tourist2@example.com", RoleName.TOURIST)


@pytest.fixture
def tour(db: Session, guide_user: User) -> Tour:
    tour = Tour(
        guide_id=guide_user.id,
        title="Old Town Walk",
        price=Decimal("100.00"),
        start_date=date.today() + timedelta(days=30),
        payment_method="bank_transfer",
    )
    db.add(tour)
    db.commit()
    return tour


@pytest.fixture
def started_tour(db: Session, guide_user: User) -> Tour:
    tour = Tour(
        guide_id=guide_user.id,
        title="Sunrise Hike",
        price=Decimal("50.00"),
        start_date=date.today() - timedelta(days=1),
    )
    db.add(tour)
    db.commit()
    return tour


@pytest.fixture
def plan(db: Session, tourist_user: User) -> Plan:
    plan = Plan(user_id=tourist_user.id, title="Three days in the mountains")
    db.add(plan)
    db.commit()
    return plan


@pytest.fixture
def make_booking(db: Session):
    def _make(
        tour: Tour,
        tourist: User,
        participants_count: int = 3,
        status: BookingStatus = BookingStatus.PENDING,
    ) -> TourBooking:
        booking = TourBooking(
            tour_id=tour.id,
            tourist_id=tourist.id,
            participants_count=participants_count,
            amount=compute_booking_amount(tour.price, participants_count),
            status=status.value,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def booking(make_booking, tour: Tour, tourist_user: User) -> TourBooking:
    """A pending booking for 3 participants (amount 300.00)."""
    return make_booking(tour, tourist_user)


@pytest.fixture
def make_payment(db: Session):
    def _make(
        payer: User,
        booking: TourBooking,
        status: PaymentStatus = PaymentStatus.PENDING,
        amount: Decimal = None,
        receipt_image: str = None,
    ) -> Payment:
        payment = Payment(
            payer_id=payer.id,
            amount=amount if amount is not None else booking.amount,
            status=status.value,
            payable_type="tour_bookings",
            payable_id=booking.id,
            receipt_image=receipt_image,
        )
        db.add(payment)
        db.commit()
        return payment

    return _make


def _headers(user: User) -> dict:
    token = create_access_token(data={"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_admin(admin_user: User) -> dict:
    return _headers(admin_user)


@pytest.fixture
def auth_headers_guide(guide_user: User) -> dict:
    return _headers(guide_user)


@pytest.fixture
def auth_headers_other_guide(other_guide: User) -> dict:
    return _headers(other_guide)


@pytest.fixture
def auth_headers_tourist(tourist_user: User) -> dict:
    return _headers(tourist_user)


@pytest.fixture
def auth_headers_other_tourist(other_tourist: User) -> dict:
    return _headers(other_tourist)


@pytest.fixture
def admin_actor(admin_user: User) -> Actor:
    return Actor.from_user(admin_user)


@pytest.fixture
def guide_actor(guide_user: User) -> Actor:
    return Actor.from_user(guide_user)


@pytest.fixture
def tourist_actor(tourist_user: User) -> Actor:
    return Actor.from_user(tourist_user)


@pytest.fixture
def other_tourist_actor(other_tourist: User) -> Actor:
    return Actor.from_user(other_tourist)
