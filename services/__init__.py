"""Service layer composing the screening engine with storage."""
from .screening import ScreeningService, StartResult

__all__ = ["ScreeningService", "StartResult"]
