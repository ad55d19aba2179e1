import uuid
from sqlalchemy import Boolean, Column, JSON, Numeric, String, Text, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marzan_loyalty.db import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")

    price = Column(Numeric(10, 2), nullable=False)
    promotional_price = Column(Numeric(10, 2), nullable=True)
    promotion_end_date = Column(TIMESTAMP, nullable=True)

    # mirrors the gallery image at display_order 0
    image_url = Column(String(500), nullable=False)
    category = Column(String(100), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    tags = Column(JSON, nullable=False, default=list)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.display_order",
    )
