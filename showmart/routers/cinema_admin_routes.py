# showmart/routers/cinema_admin_routes.py
import logging
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from showmart.auth import require_role
from showmart.database import schemas
from showmart.database.database import get_db
from showmart.services import cinema_service

# ==============================
# Logging Setup
# ==============================
logger = logging.getLogger(__name__)

# ==============================
# Router Configuration
# ==============================
router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = require_role("admin")


@router.get("/overview")
def overview(db: Session = Depends(get_db), _: Any = Depends(admin_only)):
    data = cinema_service.admin_overview(db)
    data["movies"] = [schemas.MovieResponse.model_validate(m) for m in data["movies"]]
    data["theaters"] = [schemas.TheaterResponse.model_validate(t) for t in data["theaters"]]
    return data


# ==============================
# MOVIE MANAGEMENT
# ==============================
@router.post("/movies", response_model=schemas.MovieResponse, status_code=status.HTTP_201_CREATED)
def create_movie(movie: schemas.MovieCreate, db: Session = Depends(get_db), _: Any = Depends(admin_only)):
    try:
        new_movie = cinema_service.create_movie(db, **movie.model_dump())
        logger.info("Movie added: %s", new_movie.title)
        return new_movie
    except Exception as e:
        logger.exception("Error adding movie")
        raise HTTPException(status_code=500, detail=f"Error adding movie: {str(e)}")


@router.put("/movies/{movie_id}", response_model=schemas.MovieResponse)
def update_movie(
    movie_id: int,
    movie: schemas.MovieUpdate,
    db: Session = Depends(get_db),
    _: Any = Depends(admin_only),
):
    try:
        updated = cinema_service.update_movie(db, movie_id, **movie.model_dump(exclude_unset=True))
        logger.info("Movie updated: %s", updated.title)
        return updated
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception("Error updating movie")
        raise HTTPException(status_code=500, detail=f"Error updating movie: {str(e)}")


@router.delete("/movies/{movie_id}")
def delete_movie(movie_id: int, db: Session = Depends(get_db), _: Any = Depends(admin_only)):
    try:
        cinema_service.delete_movie(db, movie_id)
        logger.info("Movie deleted (ID=%s)", movie_id)
        return {"detail": "Movie deleted successfully"}
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception("Error deleting movie")
        raise HTTPException(status_code=500, detail=f"Error deleting movie: {str(e)}")


# ==============================
# THEATER MANAGEMENT
# ==============================
@router.get("/theaters", response_model=List[schemas.TheaterResponse])
def list_theaters(db: Session = Depends(get_db), _: Any = Depends(admin_only)):
    return cinema_service.list_theaters(db)


@router.post("/theaters", response_model=schemas.TheaterResponse, status_code=status.HTTP_201_CREATED)
def create_theater(theater: schemas.TheaterCreate, db: Session = Depends(get_db), _: Any = Depends(admin_only)):
    new_theater = cinema_service.create_theater(db, **theater.model_dump())
    logger.info("Theater added: %s", new_theater.name)
    return new_theater


# ==============================
# SHOWTIME MANAGEMENT
# ==============================
@router.post("/showtimes", response_model=schemas.ShowtimeResponse, status_code=status.HTTP_201_CREATED)
def create_showtime(showtime: schemas.ShowtimeCreate, db: Session = Depends(get_db), _: Any = Depends(admin_only)):
    try:
        return cinema_service.create_showtime(db, **showtime.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
