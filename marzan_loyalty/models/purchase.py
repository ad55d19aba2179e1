import uuid
from sqlalchemy import Boolean, Column, Numeric, String, TIMESTAMP, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from marzan_loyalty.db import Base


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # loyalty-code purchases carry the consumed code here
    transaction_id = Column(String(100), nullable=False, unique=True)

    amount = Column(Numeric(10, 2), nullable=False, default=0)
    purchased_at = Column(TIMESTAMP, nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
