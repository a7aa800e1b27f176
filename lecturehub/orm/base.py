"""
lecturehub/orm/base.py
Base model for all ORM models
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def new_uuid() -> str:
    """Surrogate key generator for UUID-keyed tables."""
    return str(uuid.uuid4())


class BaseModel(Base):
    """
    Abstract base model with common fields.
    UUID-keyed ORM models inherit from this.
    """
    __abstract__ = True

    id = Column(
        String(36),
        primary_key=True,
        default=new_uuid,
        index=True
    )

    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        comment="Timestamp when record was created"
    )

    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
        comment="Timestamp when record was last updated"
    )
