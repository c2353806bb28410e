# showmart/services/pricing.py
"""
Pure pricing, seat and delivery helpers shared by the marketplace and cinema services.

Nothing in here touches the database, so callers can use these from models,
services and tests alike.
"""
import random
import re
import string
from datetime import date, timedelta
from typing import Optional, Tuple

CART_MARKUP = 1.2
DIRECT_BUY_MARKUP = 1.3

MAX_SEAT_ROWS = 26
MAX_SEATS_PER_ROW = 50

_PINCODE_RE = re.compile(r"^\d{6}$")
_SEAT_RE = re.compile(r"^([A-Z])([1-9][0-9]*)$")

# (price upper bound, minimum quantity) checked in order
_MOQ_TIERS = (
    (100, 100),
    (800, 50),
    (1200, 20),
    (2000, 10),
    (7000, 5),
)


# ---------------- Seats ----------------
def seat_label(row: int, col: int) -> str:
    """Row 0 / col 0 is ``A1``."""
    if row < 0 or row >= MAX_SEAT_ROWS or col < 0:
        raise ValueError(f"Invalid seat position: row={row}, col={col}")
    return f"{string.ascii_uppercase[row]}{col + 1}"


def parse_seat_label(label: str) -> Tuple[int, int]:
    match = _SEAT_RE.match((label or "").strip().upper())
    if not match:
        raise ValueError(f"Invalid seat label: {label!r}")
    return ord(match.group(1)) - 65, int(match.group(2)) - 1


# ---------------- Prices ----------------
def discount_percentage(price: Optional[float], mrp: Optional[float]) -> float:
    if not mrp or mrp <= 0 or price is None:
        return 0.0
    return round((mrp - price) / mrp * 100, 2)


def minimum_order_quantity(price: float) -> int:
    for bound, quantity in _MOQ_TIERS:
        if price < bound:
            return quantity
    return 1


def retail_price(wholesale_price: float, markup: float = CART_MARKUP) -> float:
    return round(wholesale_price * markup, 2)


def profit_summary(price: float, purchase_price: Optional[float], stock: int = 0) -> dict:
    purchase = purchase_price or 0
    profit_per_unit = round(price - purchase, 2)
    margin = round(profit_per_unit / purchase * 100, 2) if purchase > 0 else 0.0
    return {
        "profit_per_unit": profit_per_unit,
        "profit_margin": margin,
        "total_profit": round(profit_per_unit * stock, 2),
    }


def validate_selling_price(mrp: float, price: float, purchase_price: Optional[float] = None) -> None:
    """Raise ValueError unless ``purchase_price <= price <= mrp``."""
    if mrp is None or mrp <= 0:
        raise ValueError("MRP must be greater than 0")
    if price is None or price <= 0:
        raise ValueError("Selling price must be greater than 0")
    if price > mrp:
        raise ValueError("Selling price cannot be greater than MRP")
    if purchase_price is not None and price < purchase_price:
        raise ValueError("Selling price cannot be lower than purchase price")


# ---------------- Delivery ----------------
def estimate_delivery(pincode: str, today: Optional[date] = None) -> dict:
    if not _PINCODE_RE.match((pincode or "").strip()):
        raise ValueError("Please enter a valid 6-digit pincode")
    days = random.randint(2, 6)
    start = today or date.today()
    return {"pincode": pincode.strip(), "days": days, "estimated_date": start + timedelta(days=days)}
