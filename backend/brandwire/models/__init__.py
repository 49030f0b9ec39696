# SQLAlchemy models
from brandwire.models.brand import Brand
from brandwire.models.brand_update import BrandUpdate, UpdateType, UpdateOrigin

__all__ = [
    "Brand",
    "BrandUpdate",
    # Enums
    "UpdateType",
    "UpdateOrigin",
]
