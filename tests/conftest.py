"""
Test configuration and fixtures.

Environment must be set before any showmart module is imported: the database
URL and bcrypt cost are read at import time.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["OPENAI_API_KEY"] = ""

import itertools  # noqa: E402
from datetime import date, time, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from showmart.assistant import router as assistant_router  # noqa: E402
from showmart.auth import create_access_token  # noqa: E402
from showmart.core.redis import get_redis_or_none  # noqa: E402
from showmart.database import models  # noqa: E402
from showmart.database.database import Base, SessionLocal, engine  # noqa: E402
from showmart.main import app  # noqa: E402
from showmart.services import account_service  # noqa: E402

DEFAULT_PASSWORD = "secret123"
_ids = itertools.count(1)


class FakeRedis:
    """In-memory stand-in for the redis.asyncio client; TTLs are recorded, not enforced."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def mget(self, keys):
        return [self.store.get(k) for k in keys]

    async def set(self, key, value, nx=False, px=None, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        self.ttls[key] = px if px is not None else (ex * 1000 if ex else None)
        return True

    async def setex(self, key, seconds, value):
        self.store[key] = value
        self.ttls[key] = seconds * 1000
        return True

    async def pexpire(self, key, ms):
        if key not in self.store:
            return False
        self.ttls[key] = ms
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db, fake_redis):
    async def _redis():
        return fake_redis

    app.dependency_overrides[get_redis_or_none] = _redis
    assistant_router._rate_limit_store.clear()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def no_redis_client(db):
    async def _redis():
        return None

    app.dependency_overrides[get_redis_or_none] = _redis
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user: models.User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


@pytest.fixture
def make_user(db):
    def _make(role="customer", email=None, city=None, full_name=None):
        n = next(_ids)
        user = account_service.create_user(
            db,
            email or f"{role}{n}@example.com",
            DEFAULT_PASSWORD,
            role,
            full_name or f"{role.title()} {n}",
            city,
        )
        return user, auth_headers(user)
    return _make


@pytest.fixture
def make_category(db):
    def _make(name=None, parent_id=None):
        category = models.Category(name=name or f"Category {next(_ids)}", parent_id=parent_id)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make


@pytest.fixture
def make_product(db, make_category):
    def _make(seller, price=100.0, stock=20, name=None, category=None, mrp=None, purchase_price=None, **extra):
        category = category or make_category()
        product = models.Product(
            seller_id=seller.id,
            category_id=category.id,
            name=name or f"Product {next(_ids)}",
            price=price,
            mrp=mrp,
            purchase_price=purchase_price,
            stock_quantity=stock,
            **extra,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_showtime(db):
    def _make(rows=3, seats_per_row=4, price=200.0, show_date=None, show_time=time(19, 0), movie=None):
        if movie is None:
            movie = models.Movie(title=f"Movie {next(_ids)}", genre="Drama", duration_minutes=120)
            db.add(movie)
        theater = models.Theater(name=f"Screen {next(_ids)}", total_rows=rows, seats_per_row=seats_per_row)
        db.add(theater)
        db.flush()
        showtime = models.Showtime(
            movie_id=movie.id,
            theater_id=theater.id,
            show_date=show_date or date.today() + timedelta(days=1),
            show_time=show_time,
            price=price,
            available_seats=rows * seats_per_row,
        )
        db.add(showtime)
        db.commit()
        db.refresh(showtime)
        return showtime
    return _make
