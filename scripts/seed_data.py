"""Seed the database with categories, movies, a theater with showtimes and an admin account.

Run from the project root:
python scripts/seed_data.py
"""
import os
from datetime import date, time, timedelta

from showmart.database import models
from showmart.database.database import Base, SessionLocal, engine
from showmart.services import account_service, cinema_service

CATEGORIES = [
    ("Groceries", None),
    ("Fruits & Vegetables", "Groceries"),
    ("Dairy", "Groceries"),
    ("Electronics", None),
    ("Home & Kitchen", None),
]

MOVIES = [
    {"title": "The Great Adventure", "description": "An epic journey.", "genre": "Adventure",
     "duration_minutes": 120, "rating": 8.1},
    {"title": "Comedy Night", "description": "Laughs for everyone.", "genre": "Comedy",
     "duration_minutes": 95, "rating": 7.2},
    {"title": "Sci-Fi Saga", "description": "Futuristic thrills.", "genre": "Sci-Fi",
     "duration_minutes": 140, "rating": 0, "status": "coming_soon"},
]


def seed_categories(db):
    if db.query(models.Category).count():
        print("Categories already present; skipping.")
        return
    by_name = {}
    for name, parent in CATEGORIES:
        category = models.Category(name=name, parent_id=by_name[parent].id if parent else None)
        db.add(category)
        db.flush()
        by_name[name] = category
    db.commit()
    print(f"Seeded {len(CATEGORIES)} categories.")


def seed_cinema(db):
    if db.query(models.Movie).count():
        print("Movies already present; skipping.")
        return
    movies = [cinema_service.create_movie(db, **m) for m in MOVIES]
    theater = cinema_service.create_theater(db, "Screen 1", total_rows=10, seats_per_row=12)
    today = date.today()
    for offset in range(3):
        for show_time in (time(14, 0), time(19, 30)):
            cinema_service.create_showtime(db, movies[0].id, theater.id, today + timedelta(days=offset), show_time)
    print(f"Seeded {len(movies)} movies and showtimes for {theater.name}.")


def seed_admin(db):
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        print("ADMIN_EMAIL / ADMIN_PASSWORD not set; skipping admin account.")
        return
    admin = account_service.create_admin(db, email, password)
    print(f"Admin ready: {admin.email}")


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_categories(db)
        seed_cinema(db)
        seed_admin(db)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
