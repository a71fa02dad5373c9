"""Catalog domain - Astrology services offered for booking"""

from .router import router
from .seed import seed_services

__all__ = ["router", "seed_services"]
