import uuid
from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marzan_loyalty.db import Base


class ProductImage(Base):
    __tablename__ = "product_images"

    __table_args__ = (
        UniqueConstraint("product_id", "display_order", name="uq_product_images_product_order"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    product_id = Column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    image_url = Column(String(500), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP, server_default=func.now())

    product = relationship("Product", back_populates="images")
