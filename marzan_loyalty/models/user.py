import uuid
from sqlalchemy import Boolean, Column, String, Text, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from marzan_loyalty.db import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # always stored lowercase; never changed after signup
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)

    full_name = Column(String(120), nullable=False)
    phone = Column(String(20))

    cep = Column(String(9))
    street = Column(String(255))
    number = Column(String(30))
    complement = Column(String(120))
    neighborhood = Column(String(120))
    city = Column(String(120))
    state = Column(String(2))

    # legacy combined address, kept in sync with the structured fields
    address = Column(Text)

    is_admin = Column(Boolean, nullable=False, default=False)
    email_confirmed_at = Column(TIMESTAMP)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
