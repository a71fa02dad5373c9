"""Catalog repository - Database operations for bookable services"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Service


class CatalogRepository:
    """Repository for service catalog database operations"""

    @staticmethod
    def list_services(db: Session) -> list[Service]:
        """All services in the order they were added"""
        return db.query(Service).order_by(Service.created_at.asc(), Service.name.asc()).all()

    @staticmethod
    def get_service_by_slug(db: Session, slug: str) -> Optional[Service]:
        return db.query(Service).filter(Service.slug == slug).first()

    @staticmethod
    def count_services(db: Session) -> int:
        return db.query(Service).count()

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service
