# showmart/services/booking_service.py
import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from showmart.database import models
from showmart.services import pricing, seat_hold_service
from showmart.services.cinema_service import get_showtime_or_404

logger = logging.getLogger(__name__)


def default_owner(user: models.User) -> str:
    return f"user:{user.id}"


def owner_for(user: models.User, hold_owner: Optional[str] = None) -> str:
    """Hold owner key; a client supplied session id is namespaced under the caller."""
    owner = default_owner(user)
    return f"{owner}:{hold_owner}" if hold_owner else owner


def grid_labels(theater: models.Theater) -> List[str]:
    return [
        pricing.seat_label(row, col)
        for row in range(theater.total_rows)
        for col in range(theater.seats_per_row)
    ]


def validate_labels(showtime: models.Showtime, labels: List[str]) -> List[str]:
    """Normalise labels and check they are unique and inside the theater grid."""
    if not labels:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Select at least one seat")

    normalized = []
    theater = showtime.theater
    for label in labels:
        try:
            row, col = pricing.parse_seat_label(label)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        if row >= theater.total_rows or col >= theater.seats_per_row:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Seat {label} does not exist")
        normalized.append(pricing.seat_label(row, col))

    if len(set(normalized)) != len(normalized):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Duplicate seats in selection")
    return normalized


def booked_labels(db: Session, showtime_id: int) -> List[str]:
    rows = (
        db.query(models.BookingSeat.seat_label)
        .join(models.Booking, models.Booking.id == models.BookingSeat.booking_id)
        .filter(models.BookingSeat.showtime_id == showtime_id, models.Booking.status == "confirmed")
        .all()
    )
    return sorted((label for (label,) in rows), key=pricing.parse_seat_label)


def _conflict(message: str, seats: List[str]) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail={"message": message, "seats": seats})


async def seat_map(db: Session, redis, showtime_id: int, owner: Optional[str] = None) -> dict:
    showtime = get_showtime_or_404(db, showtime_id)
    theater = showtime.theater
    labels = grid_labels(theater)
    return {
        "showtime_id": showtime.id,
        "total_rows": theater.total_rows,
        "seats_per_row": theater.seats_per_row,
        "price": showtime.price,
        "available_seats": showtime.available_seats,
        "rows": [
            [pricing.seat_label(row, col) for col in range(theater.seats_per_row)]
            for row in range(theater.total_rows)
        ],
        "booked": booked_labels(db, showtime.id),
        "held": await seat_hold_service.held_by_others(redis, showtime.id, labels, owner),
    }


async def hold(db: Session, redis, showtime_id: int, labels: List[str], owner: str) -> dict:
    showtime = get_showtime_or_404(db, showtime_id)
    labels = validate_labels(showtime, labels)

    taken = sorted(set(labels) & set(booked_labels(db, showtime.id)))
    if taken:
        raise _conflict("Seats already booked", taken)

    try:
        result = await seat_hold_service.hold_seats(redis, showtime.id, labels, owner)
    except Exception as e:
        logger.warning("Seat hold failed for showtime %s: %s", showtime.id, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Seat hold service unavailable")

    if not result["success"]:
        raise _conflict("Seats are being held by another user", result["conflicts"])
    return result


async def release(db: Session, redis, showtime_id: int, labels: List[str], owner: str) -> dict:
    showtime = get_showtime_or_404(db, showtime_id)
    labels = validate_labels(showtime, labels)
    try:
        released = await seat_hold_service.release_seats(redis, showtime.id, labels, owner)
    except Exception as e:
        logger.warning("Seat release failed for showtime %s: %s", showtime.id, e)
        released = []
    return {"released": released}


async def book(
    db: Session,
    redis,
    user: models.User,
    showtime_id: int,
    labels: List[str],
    payment_method: str = "card",
    owner: Optional[str] = None,
) -> dict:
    owner = owner or default_owner(user)
    showtime = get_showtime_or_404(db, showtime_id)
    labels = validate_labels(showtime, labels)

    taken = sorted(set(labels) & set(booked_labels(db, showtime.id)))
    if taken:
        raise _conflict("Seats already booked", taken)

    held = await seat_hold_service.held_by_others(redis, showtime.id, labels, owner)
    if held:
        raise _conflict("Seats are being held by another user", held)

    booking = models.Booking(
        user_id=user.id,
        showtime_id=showtime.id,
        total_amount=round(len(labels) * showtime.price, 2),
        status="confirmed",
        payment_method=payment_method,
    )
    for label in labels:
        row, col = pricing.parse_seat_label(label)
        booking.seats.append(models.BookingSeat(
            showtime_id=showtime.id, seat_row=row, seat_col=col, seat_label=label,
        ))
    showtime.available_seats = max(showtime.available_seats - len(labels), 0)
    db.add(booking)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Concurrent booking conflict for showtime %s seats %s", showtime_id, labels)
        raise _conflict("Seats already booked", labels)
    db.refresh(booking)

    try:
        await seat_hold_service.release_seats(redis, showtime.id, labels, owner)
    except Exception as e:
        logger.warning("Could not release holds after booking %s: %s", booking.id, e)

    logger.info("Booking %s confirmed: user %s, showtime %s, seats %s", booking.id, user.id, showtime.id, labels)
    return serialize_booking(booking)


def serialize_booking(booking: models.Booking) -> dict:
    showtime = booking.showtime
    movie = showtime.movie if showtime else None
    theater = showtime.theater if showtime else None
    return {
        "id": booking.id,
        "user_id": booking.user_id,
        "showtime_id": booking.showtime_id,
        "total_amount": booking.total_amount,
        "status": booking.status,
        "payment_method": booking.payment_method,
        "created_at": booking.created_at,
        "seats": sorted((s.seat_label for s in booking.seats), key=pricing.parse_seat_label),
        "showtime": {
            "show_date": showtime.show_date,
            "show_time": showtime.show_time,
        } if showtime else None,
        "movie": {
            "id": movie.id,
            "title": movie.title,
            "poster_url": movie.poster_url,
            "genre": movie.genre,
        } if movie else None,
        "theater": {
            "id": theater.id,
            "name": theater.name,
            "screen_type": theater.screen_type,
        } if theater else None,
    }


def my_bookings(db: Session, user: models.User) -> List[dict]:
    bookings = (
        db.query(models.Booking)
        .options(
            selectinload(models.Booking.seats),
            joinedload(models.Booking.showtime).joinedload(models.Showtime.movie),
            joinedload(models.Booking.showtime).joinedload(models.Showtime.theater),
        )
        .filter(models.Booking.user_id == user.id)
        .order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
        .all()
    )
    return [serialize_booking(b) for b in bookings]
