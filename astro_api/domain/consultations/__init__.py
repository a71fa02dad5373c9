"""Consultations domain - Read side of booked consultations"""

from .router import router

__all__ = ["router"]
