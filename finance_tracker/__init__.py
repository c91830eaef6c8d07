"""Personal Finance Tracker package."""

__all__ = [
    "config",
    "records",
    "classifier",
    "sheets",
    "sources",
    "validation",
    "formatting",
    "analytics",
    "recommendations",
    "goals",
    "store",
    "checks",
    "reports",
    "models",
    "webapp",
]

__version__ = "0.1.0"
