"""Book office desks, list bookings and report attendance through the Sign In App API."""

__version__ = "0.1.0"
__all__ = ["__version__"]