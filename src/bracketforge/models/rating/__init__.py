"""Rating data models."""

from .point_exchange_rule import PointExchangeRule
from .rating_history import RatingHistory

__all__ = ["PointExchangeRule", "RatingHistory"]
