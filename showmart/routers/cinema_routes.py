# showmart/routers/cinema_routes.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from showmart.auth import get_current_user
from showmart.core.redis import get_redis_or_none
from showmart.database import models, schemas
from showmart.database.database import get_db
from showmart.services import booking_service, cinema_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cinema", tags=["Cinema"])


# ==============================
# MOVIES & SHOWTIMES
# ==============================
@router.get("/movies", response_model=List[schemas.MovieResponse])
def list_movies(
    movie_status: Optional[schemas.MovieStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return cinema_service.list_movies(db, movie_status)


@router.get("/movies/{movie_id}", response_model=schemas.MovieResponse)
def get_movie(movie_id: int, db: Session = Depends(get_db)):
    try:
        return cinema_service.get_movie(db, movie_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/movies/{movie_id}/showtimes")
def upcoming_showtimes(movie_id: int, db: Session = Depends(get_db)):
    try:
        return cinema_service.upcoming_showtimes(db, movie_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ==============================
# SEATS
# ==============================
@router.get("/showtimes/{showtime_id}/seats")
async def seat_map(
    showtime_id: int,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_or_none),
    current_user: models.User = Depends(get_current_user),
):
    return await booking_service.seat_map(db, redis, showtime_id, booking_service.default_owner(current_user))


@router.post("/showtimes/{showtime_id}/hold")
async def hold_seats(
    showtime_id: int,
    payload: schemas.SeatSelection,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_or_none),
    current_user: models.User = Depends(get_current_user),
):
    owner = booking_service.owner_for(current_user, payload.hold_owner)
    return await booking_service.hold(db, redis, showtime_id, payload.seats, owner)


@router.post("/showtimes/{showtime_id}/release")
async def release_seats(
    showtime_id: int,
    payload: schemas.SeatSelection,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_or_none),
    current_user: models.User = Depends(get_current_user),
):
    owner = booking_service.owner_for(current_user, payload.hold_owner)
    return await booking_service.release(db, redis, showtime_id, payload.seats, owner)


# ==============================
# BOOKINGS
# ==============================
@router.post("/bookings", response_model=schemas.BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: schemas.BookingCreate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_or_none),
    current_user: models.User = Depends(get_current_user),
):
    try:
        return await booking_service.book(
            db, redis, current_user, payload.showtime_id, payload.seats,
            payment_method=payload.payment_method,
            owner=booking_service.owner_for(current_user, payload.hold_owner),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Booking failed for user %s: %s", current_user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create booking")


@router.get("/bookings/me", response_model=List[schemas.BookingResponse])
def my_bookings(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return booking_service.my_bookings(db, current_user)


# ==============================
# REVIEWS
# ==============================
@router.get("/movies/{movie_id}/reviews")
def list_reviews(movie_id: int, db: Session = Depends(get_db)):
    try:
        cinema_service.get_movie(db, movie_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return cinema_service.list_reviews(db, movie_id)


@router.put("/movies/{movie_id}/reviews")
def upsert_review(
    movie_id: int,
    payload: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    try:
        review = cinema_service.upsert_review(db, current_user, movie_id, payload.rating, payload.comment)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"id": review.id, "movie_id": review.movie_id, "rating": review.rating, "comment": review.comment}


@router.delete("/reviews/{review_id}")
def delete_review(
    review_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    cinema_service.delete_review(db, current_user, review_id)
    return {"detail": "Review deleted"}
