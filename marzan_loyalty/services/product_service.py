import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from marzan_loyalty.errors import NotFoundError, ValidationError
from marzan_loyalty.models.product import Product
from marzan_loyalty.models.product_image import ProductImage
from marzan_loyalty.services.validators import require_text
from marzan_loyalty.timeutils import to_utc_naive, utcnow


logger = logging.getLogger(__name__)

# Numeric(10, 2)
MAX_PRICE = Decimal("100000000")


def _money(value, field: str) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value))
    except ArithmeticError:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")
    if amount >= MAX_PRICE:
        raise ValidationError(f"{field} must be lower than {MAX_PRICE}")
    return amount.quantize(Decimal("0.01"))


def _naive(value: datetime | None) -> datetime | None:
    if value is None or value == "":
        return None
    return to_utc_naive(value)


def _clean_tags(tags) -> list[str]:
    seen: list[str] = []
    for tag in tags or []:
        t = (tag or "").strip()
        if t and t not in seen:
            seen.append(t)
    return seen


def get_product(db: Session, product_id) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def get_images(db: Session, product_id):
    return (
        db.query(ProductImage)
        .filter(ProductImage.product_id == product_id)
        .order_by(ProductImage.display_order.asc())
        .all()
    )


# ============================================================
# ADMIN CRUD
# ============================================================
def list_products(db: Session, q: str | None = None):
    query = db.query(Product)
    if q:
        like = f"%{q.strip().lower()}%"
        query = query.filter(Product.name.ilike(like) | Product.category.ilike(like))
    return query.order_by(Product.name.asc()).all()


def create_product(db: Session, data: dict, image_urls: list[str]) -> Product:
    urls = [u.strip() for u in image_urls or [] if u and u.strip()]
    if not urls:
        raise ValidationError("At least one image is required")

    price = _money(data.get("price"), "price")
    if price is None:
        raise ValidationError("price is required")

    product = Product(
        name=require_text(data.get("name"), "name"),
        description=(data.get("description") or "").strip(),
        price=price,
        promotional_price=_money(data.get("promotional_price"), "promotional_price"),
        promotion_end_date=_naive(data.get("promotion_end_date")),
        image_url=urls[0],
        category=require_text(data.get("category"), "category"),
        active=data.get("active", True),
        tags=_clean_tags(data.get("tags")),
    )
    db.add(product)
    db.flush()

    for order, url in enumerate(urls):
        db.add(ProductImage(product_id=product.id, image_url=url, display_order=order))
    db.flush()

    logger.info("product created", extra={"product_id": str(product.id), "images": len(urls)})
    return product


def update_product(db: Session, product: Product, data: dict) -> Product:
    for key, value in data.items():
        if key in ("name", "category"):
            value = require_text(value, key)
        elif key == "price":
            value = _money(value, key)
            if value is None:
                raise ValidationError("price is required")
        elif key == "promotional_price":
            value = _money(value, key)
        elif key == "description":
            value = (value or "").strip()
        elif key == "tags":
            value = _clean_tags(value)
        elif key == "promotion_end_date":
            value = _naive(value)
        elif key == "active":
            if value is None:
                raise ValidationError("active must be true or false")
        else:
            continue
        setattr(product, key, value)

    db.flush()
    return product


def delete_product(db: Session, product: Product) -> None:
    db.delete(product)
    db.flush()
    logger.info("product deleted", extra={"product_id": str(product.id)})


# ============================================================
# GALLERY
# ============================================================
def _write_order(db: Session, product: Product, images: list[ProductImage]) -> None:
    """
    Persist ``images`` as display orders 0..n-1 and point the product's
    primary image at order 0. Two passes through negative placeholders keep
    the (product_id, display_order) unique constraint satisfied after every
    statement.
    """
    for i, image in enumerate(images):
        image.display_order = -(i + 1)
    db.flush()

    for i, image in enumerate(images):
        image.display_order = i
    if images:
        product.image_url = images[0].image_url
    db.flush()


def add_images(db: Session, product: Product, urls: list[str]) -> list[ProductImage]:
    urls = [u.strip() for u in urls or [] if u and u.strip()]
    if not urls:
        raise ValidationError("At least one image URL is required")

    images = get_images(db, product.id)
    start = len(images)
    for offset, url in enumerate(urls):
        db.add(ProductImage(product_id=product.id, image_url=url, display_order=start + offset))
    db.flush()

    images = get_images(db, product.id)
    product.image_url = images[0].image_url
    db.flush()
    return images


def upload_images(db: Session, product: Product, files, *, image_host) -> list[ProductImage]:
    """Upload ``(content, filename, content_type)`` tuples, then attach them."""
    urls = [image_host.upload(content, filename, content_type) for content, filename, content_type in files]
    return add_images(db, product, urls)


def delete_image(db: Session, product: Product, image_id) -> list[ProductImage]:
    images = get_images(db, product.id)
    target = next((img for img in images if img.id == image_id), None)
    if target is None:
        raise NotFoundError("Image not found")
    if len(images) == 1:
        raise ValidationError("A product needs at least one image")

    db.delete(target)
    db.flush()

    remaining = [img for img in images if img.id != image_id]
    _write_order(db, product, remaining)
    return remaining


def reorder_images(db: Session, product: Product, image_ids: list) -> list[ProductImage]:
    images = get_images(db, product.id)
    by_id = {img.id: img for img in images}

    if len(image_ids) != len(set(image_ids)) or set(image_ids) != set(by_id):
        raise ValidationError("image_ids must list every image of the product exactly once")

    ordered = [by_id[i] for i in image_ids]
    _write_order(db, product, ordered)

    logger.info(
        "product images reordered",
        extra={"product_id": str(product.id), "primary_image_id": str(ordered[0].id) if ordered else None},
    )
    return ordered


def move_image(db: Session, product: Product, from_index: int, to_index: int) -> list[ProductImage]:
    images = get_images(db, product.id)
    if not (0 <= from_index < len(images)) or not (0 <= to_index < len(images)):
        raise ValidationError("Image index out of range")
    if from_index == to_index:
        return images

    ids = [img.id for img in images]
    moved = ids.pop(from_index)
    ids.insert(to_index, moved)
    return reorder_images(db, product, ids)


# ============================================================
# PUBLIC CATALOG
# ============================================================
def promotion_active(product: Product, *, now: datetime | None = None) -> bool:
    if product.promotional_price is None or product.promotion_end_date is None:
        return False
    return (now or utcnow()) < product.promotion_end_date


def effective_price(product: Product, *, now: datetime | None = None) -> Decimal:
    if promotion_active(product, now=now):
        return Decimal(product.promotional_price)
    return Decimal(product.price)


def discount_percent(product: Product, *, now: datetime | None = None) -> int:
    if not promotion_active(product, now=now) or not product.price:
        return 0
    price = Decimal(product.price)
    pct = (price - Decimal(product.promotional_price)) / price * 100
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def list_catalog(
    db: Session,
    *,
    q: str | None = None,
    category: str | None = None,
    tag: str | None = None,
):
    query = db.query(Product).filter(Product.active.is_(True))
    if q:
        like = f"%{q.strip().lower()}%"
        query = query.filter(Product.name.ilike(like) | Product.description.ilike(like))
    if category and category != "all":
        query = query.filter(Product.category == category)

    products = query.order_by(Product.name.asc()).all()
    if tag:
        products = [p for p in products if tag in (p.tags or [])]
    return products


def catalog_facets(db: Session) -> dict:
    products = db.query(Product).filter(Product.active.is_(True)).order_by(Product.name.asc()).all()

    categories: list[str] = []
    tags: list[str] = []
    for p in products:
        if p.category and p.category not in categories:
            categories.append(p.category)
        for t in p.tags or []:
            if t not in tags:
                tags.append(t)
    return {"categories": categories, "tags": tags}


def get_active_product(db: Session, product_id) -> Product:
    product = get_product(db, product_id)
    if not product.active:
        raise NotFoundError("Product not found")
    return product


def product_view(db: Session, product: Product, *, now: datetime | None = None) -> dict:
    images = get_images(db, product.id)
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description or "",
        "price": product.price,
        "promotional_price": product.promotional_price,
        "promotion_end_date": product.promotion_end_date,
        "promotion_active": promotion_active(product, now=now),
        "effective_price": effective_price(product, now=now),
        "discount_percent": discount_percent(product, now=now),
        "image_url": images[0].image_url if images else product.image_url,
        "category": product.category,
        "active": bool(product.active),
        "tags": list(product.tags or []),
        "images": images,
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    }
