"""
Seed data for development and demos.
Creates the salon floor, staff, a few regular customers and the menu.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from salon_api.models import Customer, Product, StaffMember, Table
from shared.config.constants import Roles
from shared.config.logging import get_logger

logger = get_logger(__name__)


# Floor layout: (code, capacity)
DEMO_TABLES = [
    ("M-01", 2),
    ("M-02", 4),
    ("M-03", 4),
    ("M-04", 6),
    ("VAR-01", 1),  # balcão
]

DEMO_STAFF = [
    ("Helena Prado", Roles.MANAGER),
    ("Caio Lima", Roles.WAITER),
    ("Bia Santos", Roles.WAITER),
    ("Rui Costa", Roles.CASHIER),
    ("Dora Alves", Roles.KITCHEN),
]

# (name, phone, points)
DEMO_CUSTOMERS = [
    ("Ana Ribeiro", "+55 11 91234-0001", 320),
    ("Bruno Teixeira", "+55 11 91234-0002", 40),
    ("Carla Mendes", "+55 11 91234-0003", 0),
    ("Diego Fontes", None, 1200),
]

# (name, price_cents, requires_preparation, points_cost)
DEMO_PRODUCTS = [
    ("Cerveja Artesanal", 1800, False, 150),
    ("Caipirinha", 2400, True, None),
    ("Água com Gás", 600, False, 50),
    ("Porção de Batata", 3200, True, None),
    ("Pastel de Queijo", 1400, True, 120),
    ("Picanha na Chapa", 8900, True, None),
    ("Café Espresso", 700, True, 60),
]


def seed(db: Session) -> bool:
    """
    Seed the database with demo data.
    Idempotent: only inserts if no table exists yet. Returns True when seeded.
    """
    if db.scalar(select(Table.id).limit(1)):
        logger.info("Database already seeded, skipping")
        return False

    logger.info("Seeding database")

    db.add_all(Table(code=code, capacity=capacity) for code, capacity in DEMO_TABLES)
    db.add_all(StaffMember(name=name, role=role) for name, role in DEMO_STAFF)
    db.add_all(
        Customer(name=name, phone=phone, points=points)
        for name, phone, points in DEMO_CUSTOMERS
    )
    db.add_all(
        Product(
            name=name,
            price_cents=price,
            requires_preparation=requires_preparation,
            points_cost=points_cost,
        )
        for name, price, requires_preparation, points_cost in DEMO_PRODUCTS
    )
    db.commit()

    logger.info(
        "Database seeded",
        tables=len(DEMO_TABLES),
        staff=len(DEMO_STAFF),
        customers=len(DEMO_CUSTOMERS),
        products=len(DEMO_PRODUCTS),
    )
    return True
