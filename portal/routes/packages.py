import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Package

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/packages", tags=["Packages"])


class PackageResponse(BaseModel):
    id: int
    name: str
    displayName: str
    description: Optional[str]
    price: int
    features: list[str]


@router.get("")
async def get_packages(db: Session = Depends(get_db)):
    """Active service packages in display order"""
    packages = (
        db.query(Package).filter(Package.is_active.is_(True)).order_by(Package.sort_order, Package.id).all()
    )
    return {
        "success": True,
        "packages": [
            PackageResponse(
                id=p.id,
                name=p.name,
                displayName=p.display_name,
                description=p.description,
                price=p.price,
                features=p.features or [],
            )
            for p in packages
        ],
    }
