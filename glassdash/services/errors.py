from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence


class ValidationError(ValueError):
    """Rejected request. Nothing was changed."""


class NotFoundError(ValidationError):
    pass


class TierResolutionError(ValidationError):
    pass


class ImportValidationError(ValidationError):
    pass


@dataclass
class StockShortfall:
    product_id: str
    product_name: str
    available: float
    requested: float

    def describe(self) -> str:
        return f"Only {self.available:g} of {self.product_name} in stock ({self.requested:g} requested)."


class InsufficientStockError(ValidationError):
    def __init__(self, shortfalls: Sequence[StockShortfall]) -> None:
        self.shortfalls: List[StockShortfall] = list(shortfalls)
        message = " ".join(shortfall.describe() for shortfall in self.shortfalls)
        super().__init__(message or "Insufficient stock.")


class IntegrityViolation(RuntimeError):
    """Derived data disagrees with its source; indicates a defect, not bad input."""
