# showmart/services/cinema_service.py
import logging
from collections import OrderedDict
from datetime import date
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from showmart.database import models

logger = logging.getLogger(__name__)

RECENT_BOOKINGS_LIMIT = 50


# --------- Movies ---------

def list_movies(db: Session, movie_status: Optional[str] = None) -> List[models.Movie]:
    query = db.query(models.Movie)
    if movie_status:
        query = query.filter(models.Movie.status == movie_status)
    return query.order_by(models.Movie.created_at.desc(), models.Movie.id.desc()).all()


def get_movie(db: Session, movie_id: int) -> models.Movie:
    movie = db.get(models.Movie, movie_id)
    if not movie:
        raise ValueError("Movie not found")
    return movie


def create_movie(db: Session, **fields) -> models.Movie:
    movie = models.Movie(**fields)
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


def update_movie(db: Session, movie_id: int, **changes) -> models.Movie:
    movie = get_movie(db, movie_id)
    for key, value in changes.items():
        setattr(movie, key, value)
    db.commit()
    db.refresh(movie)
    return movie


def delete_movie(db: Session, movie_id: int) -> bool:
    """Removes the movie with its showtimes, bookings and reviews."""
    movie = get_movie(db, movie_id)
    db.delete(movie)
    db.commit()
    return True


# --------- Theaters ---------

def create_theater(db: Session, name: str, total_rows: int = 10, seats_per_row: int = 12,
                   screen_type: str = "Standard") -> models.Theater:
    theater = models.Theater(
        name=name, total_rows=total_rows, seats_per_row=seats_per_row, screen_type=screen_type or "Standard"
    )
    db.add(theater)
    db.commit()
    db.refresh(theater)
    return theater


def list_theaters(db: Session) -> List[models.Theater]:
    return db.query(models.Theater).order_by(models.Theater.name, models.Theater.id).all()


# --------- Showtimes ---------

def create_showtime(db: Session, movie_id: int, theater_id: int, show_date, show_time,
                    price: float = 150) -> models.Showtime:
    get_movie(db, movie_id)
    theater = db.get(models.Theater, theater_id)
    if not theater:
        raise ValueError("Theater not found")

    showtime = models.Showtime(
        movie_id=movie_id,
        theater_id=theater_id,
        show_date=show_date,
        show_time=show_time,
        price=price,
        available_seats=theater.total_rows * theater.seats_per_row,
    )
    db.add(showtime)
    db.commit()
    db.refresh(showtime)
    return showtime


def get_showtime_or_404(db: Session, showtime_id: int) -> models.Showtime:
    showtime = (
        db.query(models.Showtime)
        .options(joinedload(models.Showtime.theater), joinedload(models.Showtime.movie))
        .filter(models.Showtime.id == showtime_id)
        .first()
    )
    if not showtime:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Showtime not found")
    return showtime


def upcoming_showtimes(db: Session, movie_id: int, today: Optional[date] = None) -> List[dict]:
    """Showtimes from today on, grouped by date in date/time order."""
    get_movie(db, movie_id)
    showtimes = (
        db.query(models.Showtime)
        .options(joinedload(models.Showtime.theater))
        .filter(models.Showtime.movie_id == movie_id, models.Showtime.show_date >= (today or date.today()))
        .order_by(models.Showtime.show_date, models.Showtime.show_time)
        .all()
    )
    grouped = OrderedDict()
    for st in showtimes:
        grouped.setdefault(st.show_date, []).append({
            "id": st.id,
            "show_time": st.show_time,
            "price": st.price,
            "available_seats": st.available_seats,
            "theater": {
                "id": st.theater.id,
                "name": st.theater.name,
                "screen_type": st.theater.screen_type,
            },
        })
    return [{"date": day, "showtimes": items} for day, items in grouped.items()]


# --------- Admin overview ---------

def admin_overview(db: Session) -> dict:
    recent = (
        db.query(models.Booking)
        .options(joinedload(models.Booking.showtime).joinedload(models.Showtime.movie))
        .order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
        .limit(RECENT_BOOKINGS_LIMIT)
        .all()
    )
    revenue = db.query(func.coalesce(func.sum(models.Booking.total_amount), 0)).scalar()
    return {
        "movie_count": db.query(func.count(models.Movie.id)).scalar(),
        "theater_count": db.query(func.count(models.Theater.id)).scalar(),
        "booking_count": db.query(func.count(models.Booking.id)).scalar(),
        "total_revenue": round(float(revenue or 0), 2),
        "movies": list_movies(db),
        "theaters": list_theaters(db),
        "recent_bookings": [
            {
                "id": b.id,
                "user_id": b.user_id,
                "showtime_id": b.showtime_id,
                "movie_title": b.showtime.movie.title if b.showtime and b.showtime.movie else None,
                "total_amount": b.total_amount,
                "status": b.status,
                "created_at": b.created_at,
            }
            for b in recent
        ],
    }


# --------- Reviews ---------

def upsert_review(db: Session, user: models.User, movie_id: int, rating: int,
                  comment: Optional[str] = None) -> models.Review:
    get_movie(db, movie_id)
    review = (
        db.query(models.Review)
        .filter(models.Review.user_id == user.id, models.Review.movie_id == movie_id)
        .first()
    )
    if review:
        review.rating = rating
        review.comment = comment
    else:
        review = models.Review(user_id=user.id, movie_id=movie_id, rating=rating, comment=comment)
        db.add(review)
    db.commit()
    db.refresh(review)
    logger.info("Review saved for movie %s by user %s", movie_id, user.id)
    return review


def list_reviews(db: Session, movie_id: int) -> List[dict]:
    rows = (
        db.query(models.Review, models.Profile.full_name)
        .outerjoin(models.Profile, models.Profile.id == models.Review.user_id)
        .filter(models.Review.movie_id == movie_id)
        .order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .all()
    )
    return [
        {
            "id": r.id,
            "user_id": r.user_id,
            "rating": r.rating,
            "comment": r.comment,
            "created_at": r.created_at,
            "reviewer_name": name or "Anonymous",
        }
        for r, name in rows
    ]


def delete_review(db: Session, user: models.User, review_id: int) -> None:
    review = db.get(models.Review, review_id)
    if not review:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    if review.user_id != user.id and not user.has_role("admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only delete your own review")
    db.delete(review)
    db.commit()
