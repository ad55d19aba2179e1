from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marzan_loyalty.db import get_db
from marzan_loyalty.schemas.product import CatalogFacetsOut, ProductOut
from marzan_loyalty.services import product_service
from marzan_loyalty.timeutils import utcnow


router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[ProductOut])
def list_catalog(
    q: str | None = None,
    category: str | None = None,
    tag: str | None = None,
    db: Session = Depends(get_db),
):
    now = utcnow()
    products = product_service.list_catalog(db, q=q, category=category, tag=tag)
    return [product_service.product_view(db, p, now=now) for p in products]


@router.get("/facets", response_model=CatalogFacetsOut)
def catalog_facets(db: Session = Depends(get_db)):
    return product_service.catalog_facets(db)


@router.get("/{product_id}", response_model=ProductOut)
def get_catalog_product(product_id: UUID, db: Session = Depends(get_db)):
    product = product_service.get_active_product(db, product_id)
    return product_service.product_view(db, product, now=utcnow())
