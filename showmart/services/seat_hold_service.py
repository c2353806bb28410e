# showmart/services/seat_hold_service.py
"""
Short-lived seat holds kept in Redis while a user is choosing seats.

Each held seat is one key ``<prefix>:seat_hold:<showtime_id>:<label>`` whose
value is the hold owner, written with ``SET NX PX`` so only one owner can hold
a seat at a time and the hold expires on its own.
"""
import logging
import time
from typing import Dict, Iterable, List, Optional

from showmart.core.config import SEAT_HOLD_PREFIX, SEAT_HOLD_TTL_MS

logger = logging.getLogger(__name__)


def _key_for(showtime_id: int, label: str) -> str:
    prefix = SEAT_HOLD_PREFIX.rstrip(":")
    if prefix:
        return f"{prefix}:seat_hold:{showtime_id}:{label}"
    return f"seat_hold:{showtime_id}:{label}"


def _epoch_ms_from_now_plus(ttl_ms: int) -> int:
    return int(time.time() * 1000) + int(ttl_ms)


async def holders(redis, showtime_id: int, labels: Iterable[str]) -> Dict[str, str]:
    """Map of label -> owner for the labels currently held."""
    labels = list(labels)
    if redis is None or not labels:
        return {}
    values = await redis.mget([_key_for(showtime_id, label) for label in labels])
    return {label: owner for label, owner in zip(labels, values) if owner}


async def held_by_others(redis, showtime_id: int, labels: Iterable[str], owner: Optional[str]) -> List[str]:
    try:
        held = await holders(redis, showtime_id, labels)
    except Exception as e:
        logger.warning("Could not read seat holds for showtime %s: %s", showtime_id, e)
        return []
    return sorted(label for label, holder in held.items() if holder != owner)


async def hold_seats(
    redis,
    showtime_id: int,
    labels: List[str],
    owner: str,
    ttl_ms: int = SEAT_HOLD_TTL_MS,
) -> dict:
    """
    Hold every seat in ``labels`` for ``owner`` or none of them.
    Seats the owner already holds count as acquired and get their TTL refreshed.
    """
    if not labels:
        return {"success": False, "held": [], "conflicts": [], "ttl_ms": int(ttl_ms)}

    if redis is None:
        logger.warning("Redis unavailable - seat holds disabled for showtime %s", showtime_id)
        return {
            "success": True,
            "held": list(labels),
            "conflicts": [],
            "ttl_ms": int(ttl_ms),
            "expires_at": _epoch_ms_from_now_plus(ttl_ms),
        }

    acquired: List[str] = []
    held: List[str] = []
    conflicts: List[str] = []
    for label in labels:
        key = _key_for(showtime_id, label)
        if await redis.set(key, owner, nx=True, px=int(ttl_ms)):
            acquired.append(label)
            held.append(label)
            continue
        current = await redis.get(key)
        if current == owner:
            await redis.pexpire(key, int(ttl_ms))
            held.append(label)
        else:
            conflicts.append(label)

    if conflicts:
        for label in acquired:
            await redis.delete(_key_for(showtime_id, label))
        logger.warning("Seat hold conflicts for showtime %s: %s", showtime_id, conflicts)
        return {"success": False, "held": [], "conflicts": conflicts, "ttl_ms": int(ttl_ms)}

    logger.info("Held seats %s for showtime %s, owner %s", held, showtime_id, owner)
    return {
        "success": True,
        "held": held,
        "conflicts": [],
        "ttl_ms": int(ttl_ms),
        "expires_at": _epoch_ms_from_now_plus(ttl_ms),
    }


async def release_seats(redis, showtime_id: int, labels: List[str], owner: str) -> List[str]:
    """Drop the holds in ``labels`` that belong to ``owner``; returns the released labels."""
    if redis is None or not labels:
        return []
    released = []
    for label in labels:
        key = _key_for(showtime_id, label)
        if await redis.get(key) == owner:
            await redis.delete(key)
            released.append(label)
    return released
