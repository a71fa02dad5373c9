"""Catalog domain schemas - Pydantic models for responses"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ServiceResponse(BaseModel):
    """Schema for service response"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    price: float
    currency: str
    description: Optional[str] = None
    icon: Optional[str] = None
    features: Optional[list[str]] = None
    created_at: Optional[datetime] = None
