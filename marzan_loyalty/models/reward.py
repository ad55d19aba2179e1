import uuid
from sqlalchemy import Column, Index, String, TIMESTAMP, ForeignKey, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from marzan_loyalty.db import Base


class Reward(Base):
    __tablename__ = "rewards"

    # at most one unclaimed reward per user
    __table_args__ = (
        Index(
            "uq_rewards_user_active",
            "user_id",
            unique=True,
            postgresql_where=text("claimed_at IS NULL"),
            sqlite_where=text("claimed_at IS NULL"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    reward_type = Column(String(100), nullable=False)

    created_at = Column(TIMESTAMP, server_default=func.now())
    expiry_date = Column(TIMESTAMP, nullable=True)
    claimed_at = Column(TIMESTAMP, nullable=True)
