"""SQLAlchemy ORM models."""

from app.models.user import Base, User
from app.models.watchlist import WatchlistItem
from app.models.alert import PriceAlert

__all__ = ["Base", "User", "WatchlistItem", "PriceAlert"]
