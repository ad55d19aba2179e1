from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from marzan_loyalty.db import get_db
from marzan_loyalty.deps.auth import require_admin
from marzan_loyalty.deps.services import get_image_host
from marzan_loyalty.schemas.product import (
    ImageMoveIn,
    ImageOrderIn,
    ImageUrlsIn,
    ProductCreate,
    ProductImageOut,
    ProductOut,
    ProductUpdate,
)
from marzan_loyalty.services import product_service
from marzan_loyalty.services.image_host import ImgurImageHost
from marzan_loyalty.timeutils import utcnow


router = APIRouter(
    prefix="/admin/products",
    tags=["admin-products"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=list[ProductOut])
def admin_list_products(q: str | None = None, db: Session = Depends(get_db)):
    now = utcnow()
    return [product_service.product_view(db, p, now=now) for p in product_service.list_products(db, q)]


@router.post("", response_model=ProductOut, status_code=201)
def admin_create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    data = payload.model_dump(exclude={"image_urls"})
    product = product_service.create_product(db, data, payload.image_urls)
    db.commit()
    db.refresh(product)
    return product_service.product_view(db, product)


@router.patch("/{product_id}", response_model=ProductOut)
def admin_update_product(product_id: UUID, payload: ProductUpdate, db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    product_service.update_product(db, product, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(product)
    return product_service.product_view(db, product)


@router.delete("/{product_id}", status_code=204)
def admin_delete_product(product_id: UUID, db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    product_service.delete_product(db, product)
    db.commit()


# ─── Gallery ──────────────────────────────────────────────────────
@router.post("/{product_id}/images", response_model=list[ProductImageOut])
def admin_add_images(product_id: UUID, payload: ImageUrlsIn, db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    images = product_service.add_images(db, product, payload.urls)
    db.commit()
    return images


@router.post("/{product_id}/images/upload", response_model=list[ProductImageOut])
async def admin_upload_images(
    product_id: UUID,
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    image_host: ImgurImageHost = Depends(get_image_host),
):
    product = product_service.get_product(db, product_id)
    payloads = [(await f.read(), f.filename or "image", f.content_type) for f in files]
    images = product_service.upload_images(db, product, payloads, image_host=image_host)
    db.commit()
    return images


@router.delete("/{product_id}/images/{image_id}", response_model=list[ProductImageOut])
def admin_delete_image(product_id: UUID, image_id: UUID, db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    images = product_service.delete_image(db, product, image_id)
    db.commit()
    return images


@router.put("/{product_id}/images/order", response_model=list[ProductImageOut])
def admin_reorder_images(product_id: UUID, payload: ImageOrderIn, db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    images = product_service.reorder_images(db, product, payload.image_ids)
    db.commit()
    return images


@router.post("/{product_id}/images/move", response_model=list[ProductImageOut])
def admin_move_image(product_id: UUID, payload: ImageMoveIn, db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    images = product_service.move_image(db, product, payload.from_index, payload.to_index)
    db.commit()
    return images
