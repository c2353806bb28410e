# showmart/database/schemas.py
# =========================================================
# ShowMart Schemas (Pydantic v2)
# =========================================================
from datetime import date, datetime, time
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, constr


# =========================================================
# Base Config for ORM Compatibility
# =========================================================
class ConfigModel(BaseModel):
    class Config:
        from_attributes = True


# =========================================================
# Accounts
# =========================================================
SignupRole = Literal["customer", "retailer", "wholesaler"]


class OTPRequest(BaseModel):
    email: EmailStr


class OTPVerifyRequest(BaseModel):
    email: EmailStr
    otp: constr(strip_whitespace=True, min_length=4, max_length=8)  # type: ignore


class SignupRequest(BaseModel):
    email: EmailStr
    password: constr(min_length=6, max_length=72)  # type: ignore
    full_name: Optional[str] = None
    role: SignupRole = "customer"
    city: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    roles: List[str] = []


class ProfileUpdate(BaseModel):
    full_name: Optional[constr(strip_whitespace=True, min_length=1, max_length=150)] = None  # type: ignore
    phone: Optional[constr(strip_whitespace=True, pattern=r"^\d{10}$")] = None  # type: ignore
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[constr(strip_whitespace=True, pattern=r"^\d{6}$")] = None  # type: ignore
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class LocationUpdate(BaseModel):
    city: str


class ProfileResponse(ConfigModel):
    id: int
    full_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    updated_at: Optional[datetime] = None


class MeResponse(BaseModel):
    id: int
    email: EmailStr
    roles: List[str]
    home: str
    profile: Optional[ProfileResponse] = None


# =========================================================
# Catalog
# =========================================================
class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryResponse(ConfigModel):
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryCount(BaseModel):
    id: int
    name: str
    product_count: int


class ProductCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=200)  # type: ignore
    description: Optional[str] = None
    price: float = Field(..., gt=0)
    stock_quantity: int = Field(0, ge=0)
    category_id: int
    image_url: Optional[str] = None
    is_local: bool = False
    available_date: Optional[date] = None


class ProductResponse(ConfigModel):
    id: int
    seller_id: int
    category_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    price: float
    purchase_price: Optional[float] = None
    mrp: Optional[float] = None
    stock_quantity: int
    image_url: Optional[str] = None
    is_local: bool = False
    available_date: Optional[date] = None
    discount_percentage: float = 0
    created_at: Optional[datetime] = None


class StockChange(BaseModel):
    quantity: int


class PriceUpdate(BaseModel):
    mrp: float
    price: float


# =========================================================
# Cart / Checkout
# =========================================================
class CartAdd(BaseModel):
    product_id: int


class CartUpdate(BaseModel):
    quantity: int


class CustomerCheckout(BaseModel):
    address: constr(strip_whitespace=True, min_length=10, max_length=200)  # type: ignore
    city: constr(strip_whitespace=True, min_length=2, max_length=50)  # type: ignore
    state: constr(strip_whitespace=True, min_length=2, max_length=50)  # type: ignore
    pincode: constr(strip_whitespace=True, pattern=r"^\d{6}$")  # type: ignore
    phone: constr(strip_whitespace=True, pattern=r"^\d{10}$")  # type: ignore
    payment_method: Literal["cod", "upi", "card"]


class RetailerCheckout(BaseModel):
    address: constr(strip_whitespace=True, min_length=10, max_length=200)  # type: ignore
    city: constr(strip_whitespace=True, min_length=2, max_length=50)  # type: ignore
    state: constr(strip_whitespace=True, min_length=2, max_length=50)  # type: ignore
    pincode: constr(strip_whitespace=True, pattern=r"^\d{6}$")  # type: ignore
    payment_method: Literal["cod", "online"]


class BuyNowRequest(BaseModel):
    product_id: int
    quantity: int


class OrderItemResponse(ConfigModel):
    id: int
    product_id: int
    quantity: int
    price: float


class OrderResponse(ConfigModel):
    id: int
    customer_id: int
    seller_id: int
    total_amount: float
    status: str
    payment_method: str
    payment_status: str
    delivery_address: str
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    delivery_pincode: Optional[str] = None
    estimated_delivery_date: Optional[date] = None
    actual_delivery_date: Optional[date] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemResponse] = []


class OrderStatusUpdate(BaseModel):
    status: str


# =========================================================
# Returns / Wishlist / Feedback
# =========================================================
class ReturnCreate(BaseModel):
    order_id: int
    product_id: int
    reason: str
    image_url: Optional[str] = None


class ReturnStatusUpdate(BaseModel):
    status: Literal["approved", "rejected", "refunded"]


class ReturnResponse(ConfigModel):
    id: int
    order_id: int
    product_id: int
    customer_id: int
    retailer_id: int
    quantity: int
    reason: str
    status: str
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class WishlistToggle(BaseModel):
    product_id: int


class FeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    order_id: Optional[int] = None


class DeliveryCheck(BaseModel):
    pincode: str


# =========================================================
# Cinema
# =========================================================
MovieStatus = Literal["now_showing", "coming_soon"]


class MovieBase(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=150)  # type: ignore
    description: Optional[str] = None
    genre: constr(strip_whitespace=True, min_length=1, max_length=50)  # type: ignore
    duration_minutes: int = Field(..., gt=0)
    rating: float = Field(0, ge=0, le=10)
    poster_url: Optional[str] = None
    trailer_url: Optional[str] = None
    release_date: Optional[date] = None
    language: str = "English"
    status: MovieStatus = "now_showing"


class MovieCreate(MovieBase):
    pass


class MovieUpdate(BaseModel):
    title: Optional[constr(strip_whitespace=True, min_length=1, max_length=150)] = None  # type: ignore
    description: Optional[str] = None
    genre: Optional[constr(strip_whitespace=True, min_length=1, max_length=50)] = None  # type: ignore
    duration_minutes: Optional[int] = Field(None, gt=0)
    rating: Optional[float] = Field(None, ge=0, le=10)
    poster_url: Optional[str] = None
    trailer_url: Optional[str] = None
    release_date: Optional[date] = None
    language: Optional[str] = None
    status: Optional[MovieStatus] = None


class MovieResponse(MovieBase, ConfigModel):
    id: int
    created_at: Optional[datetime] = None


class TheaterCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=150)  # type: ignore
    total_rows: int = Field(10, ge=1, le=26)
    seats_per_row: int = Field(12, ge=1, le=50)
    screen_type: str = "Standard"


class TheaterResponse(TheaterCreate, ConfigModel):
    id: int


class ShowtimeCreate(BaseModel):
    movie_id: int
    theater_id: int
    show_date: date
    show_time: time
    price: float = Field(150, gt=0)


class ShowtimeResponse(ConfigModel):
    id: int
    movie_id: int
    theater_id: int
    show_date: date
    show_time: time
    price: float
    available_seats: int


class SeatSelection(BaseModel):
    seats: List[str]
    hold_owner: Optional[str] = None


class BookingCreate(BaseModel):
    showtime_id: int
    seats: List[str]
    payment_method: Literal["card", "upi"] = "card"
    hold_owner: Optional[str] = None


class BookingShowtime(BaseModel):
    show_date: date
    show_time: time


class BookingMovie(BaseModel):
    id: int
    title: str
    poster_url: Optional[str] = None
    genre: Optional[str] = None


class BookingTheater(BaseModel):
    id: int
    name: str
    screen_type: Optional[str] = None


class BookingResponse(ConfigModel):
    id: int
    user_id: int
    showtime_id: int
    total_amount: float
    status: str
    payment_method: str
    created_at: Optional[datetime] = None
    seats: List[str] = []
    showtime: Optional[BookingShowtime] = None
    movie: Optional[BookingMovie] = None
    theater: Optional[BookingTheater] = None


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
