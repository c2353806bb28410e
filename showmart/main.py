# showmart/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from showmart.core.config import CORS_ORIGINS, LOG_LEVEL, settings
from showmart.database import models
from showmart.database.database import engine

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Lifespan events (startup/shutdown)
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Redis init (non-fatal)
    try:
        from showmart.core.redis import get_redis
        await get_redis()
        logger.info("Redis connected successfully")
    except Exception as e:
        logger.warning("Redis connection failed (OTP signup and seat holds degraded): %s", e)

    from showmart.assistant.config import ASSISTANT_ENABLED, LLM_MODEL
    if ASSISTANT_ENABLED:
        logger.info("Assistant enabled (model: %s)", LLM_MODEL)
    else:
        logger.info("Assistant running without an LLM (OPENAI_API_KEY not set)")

    yield

    try:
        from showmart.core.redis import close_redis
        await close_redis()
    except Exception as e:
        logger.error("Error closing Redis: %s", e)


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Marketplace and cinema booking backend",
    version=settings.VERSION,
    lifespan=lifespan,
)

# Ensure DB models/tables exist
models.Base.metadata.create_all(bind=engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Every router is mounted under /api ---
from showmart.assistant.router import router as assistant_router  # noqa: E402
from showmart.routers import (  # noqa: E402
    auth_routes, cart_routes, cinema_admin_routes, cinema_routes, health, order_routes,
    seller_routes, shop_routes,
)

app.include_router(auth_routes.router, prefix="/api")
app.include_router(shop_routes.router, prefix="/api")
app.include_router(cart_routes.router, prefix="/api")
app.include_router(order_routes.router, prefix="/api")
app.include_router(seller_routes.router, prefix="/api")
app.include_router(cinema_routes.router, prefix="/api")
app.include_router(cinema_admin_routes.router, prefix="/api")
app.include_router(assistant_router, prefix="/api")
app.include_router(health.router, prefix="/api")


@app.get("/")
def root():
    return {"message": "ShowMart API is running"}
