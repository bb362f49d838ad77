"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Point the app's own engine at SQLite before anything imports settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salon_api.main import app
from salon_api.models import Base, Customer, Product, StaffMember, Table
from salon_api.services.domain import OrderService, TableService
from salon_api.services.engine import SalonEngine
from shared.config.constants import Roles
from shared.infrastructure.db import get_db


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.

    The lifespan (table creation on the app engine, outbox loop) is not run.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def salon(db_session):
    """SalonEngine bound to the test session."""
    return SalonEngine(db_session)


# =============================================================================
# Floor
# =============================================================================


@pytest.fixture
def seed_table(db_session):
    """Table M-01 with room for four."""
    table = Table(code="M-01", capacity=4)
    db_session.add(table)
    db_session.commit()
    return table


@pytest.fixture
def seed_other_table(db_session):
    """A second, free table."""
    table = Table(code="M-02", capacity=4)
    db_session.add(table)
    db_session.commit()
    return table


@pytest.fixture
def seed_bar_seat(db_session):
    """Single-seat counter spot."""
    table = Table(code="VAR-01", capacity=1)
    db_session.add(table)
    db_session.commit()
    return table


# =============================================================================
# People
# =============================================================================


@pytest.fixture
def seed_customers(db_session):
    """Ana (120 points), Bruno (50 points) and Carla (no points)."""
    customers = [
        Customer(name="Ana Ribeiro", points=120),
        Customer(name="Bruno Teixeira", points=50),
        Customer(name="Carla Mendes", points=0),
    ]
    db_session.add_all(customers)
    db_session.commit()
    return customers


@pytest.fixture
def seed_manager(db_session):
    staff = StaffMember(name="Helena Prado", role=Roles.MANAGER)
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture
def seed_waiter(db_session):
    staff = StaffMember(name="Caio Lima", role=Roles.WAITER)
    db_session.add(staff)
    db_session.commit()
    return staff


# =============================================================================
# Catalog
# =============================================================================


@pytest.fixture
def seed_products(db_session):
    """
    Menu used across tests, keyed by short name.

    - beer: R$ 10.00, no preparation, redeemable for 80 points
    - fries: R$ 32.00, kitchen-prepared
    - water: R$ 6.00, no preparation
    - retired: inactive product
    """
    products = {
        "beer": Product(name="Cerveja", price_cents=1000, requires_preparation=False, points_cost=80),
        "fries": Product(name="Porção de Batata", price_cents=3200, requires_preparation=True),
        "water": Product(name="Água", price_cents=600, requires_preparation=False),
        "retired": Product(name="Chopp Sazonal", price_cents=1500, requires_preparation=False, is_active=False),
    }
    db_session.add_all(products.values())
    db_session.commit()
    return products


# =============================================================================
# Helpers
# =============================================================================


def seat(db_session, table, *customers):
    """Seat customers in order; the first becomes principal."""
    service = TableService(db_session)
    for customer in customers:
        service.seat_occupant(table.id, customer.id)


def add_line(db_session, table, product, quantity=1, consumer=None):
    """Add a line and return its output."""
    return OrderService(db_session).add_line(
        table.id,
        product.id,
        quantity,
        consumer.id if consumer is not None else None,
    )
