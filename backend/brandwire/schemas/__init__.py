from brandwire.schemas.brand import BrandRssUpdate, BrandRssResponse
from brandwire.schemas.brand_update import (
    BrandSummary,
    BrandUpdateResponse,
    BrandUpdateCreate,
    Pagination,
    UpdatesPage,
)

__all__ = [
    "BrandRssUpdate",
    "BrandRssResponse",
    "BrandSummary",
    "BrandUpdateResponse",
    "BrandUpdateCreate",
    "Pagination",
    "UpdatesPage",
]
