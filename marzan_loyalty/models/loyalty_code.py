import uuid
from sqlalchemy import Column, String, TIMESTAMP, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from marzan_loyalty.db import Base


class LoyaltyCode(Base):
    __tablename__ = "loyalty_codes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    code = Column(String(12), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, index=True)

    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    # NULL until the single successful redemption
    used_at = Column(TIMESTAMP, nullable=True)
    used_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
