"""Catalog router - Public listing of bookable services"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...exceptions import NotFound
from .repository import CatalogRepository
from .schemas import ServiceResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])


@router.get("", response_model=list[ServiceResponse])
async def list_services(db: Session = Depends(get_db)):
    return CatalogRepository.list_services(db)


@router.get("/{slug}", response_model=ServiceResponse)
async def get_service(slug: str, db: Session = Depends(get_db)):
    service = CatalogRepository.get_service_by_slug(db, slug)
    if not service:
        raise NotFound("Service not found")
    return service
