"""
lecturehub/orm/user_contribution.py
Append-only contribution ledger

Rules:
- Ledger is append-only (no updates, no deletes)
- One row per contributing action: photo group creation, each photo,
  module publish, explicit edit
- "Which modules did a user touch" is answered from Module.created_by /
  last_updated_by, not by replaying this table
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from lecturehub.core.db_types import UniversalJSON
from lecturehub.orm.base import Base, new_uuid


class ContributionType(str, Enum):
    PHOTO = "photo"
    MODULE = "module"
    EDIT = "edit"


class UserContribution(Base):
    """One ledger entry: user_id did contribution_type to contribution_id"""
    __tablename__ = "user_contributions"

    id = Column(String(36), primary_key=True, default=new_uuid, index=True)
    user_id = Column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    contribution_type = Column(String(50), nullable=False, index=True)
    contribution_id = Column(String(36), nullable=False)
    contribution_data = Column(UniversalJSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="contributions", lazy="raise")

    __table_args__ = (
        Index("ix_user_contributions_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return (
            f"<UserContribution(user={self.user_id}, "
            f"type={self.contribution_type}, target={self.contribution_id})>"
        )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "contribution_type": self.contribution_type,
            "contribution_id": self.contribution_id,
            "contribution_data": self.contribution_data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
