"""Helper modules for the WeightPriceAdmin application."""

__all__ = [
    "documents",
    "extensions",
    "pricing",
]
