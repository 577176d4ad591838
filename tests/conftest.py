"""
Pytest fixtures: in-memory SQLite engine shared by the service layer and the
FastAPI test client, plus small factories for products, carts and orders.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base, get_db
from app.main import app
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.product import Product


ADMIN_KEY = "test-admin-key"
DAY0 = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory, monkeypatch):
    monkeypatch.setenv("ADMIN_API_KEY", ADMIN_KEY)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture()
def make_product(db_session):
    def _make(name="Geladinho de Morango", price=2.5, category="geladinhos", is_active=True):
        product = Product(name=name, price=price, category=category, is_active=is_active)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture()
def make_order(db_session):
    def _make(phone="(71) 99999-1234", name="Maria", quantities=(2,), status="pending"):
        order = Order(
            customer_name=name,
            customer_phone=phone,
            delivery_option="pickup",
            subtotal=0,
            delivery_fee=0,
            total=0,
            status=status,
        )
        for idx, q in enumerate(quantities):
            order.items.append(
                OrderItem(
                    product_name=f"Item {idx}",
                    quantity=q,
                    unit_price=2.5,
                    total_price=2.5 * (q or 1),
                )
            )
        db_session.add(order)
        db_session.commit()
        db_session.refresh(order)
        return order

    return _make
