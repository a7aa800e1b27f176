"""
lecturehub/orm/user.py
User model used for attribution

Users are created by the external sign-in flow; this service only reads
them to resolve the acting user and to label contributions.
"""
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from lecturehub.orm.base import BaseModel


class User(BaseModel):
    """
    User model.

    Fields:
    - id: UUID string, the opaque acting-user id handed to the core
    - email: Unique login email
    - name: Full name from the identity provider
    - display_name: Optional public name shown in attributions
    - google_id: Identity provider subject (nullable for local accounts)
    - avatar_url: Profile image
    """
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=True)
    google_id = Column(String(255), nullable=True, unique=True, index=True)
    avatar_url = Column(String(500), nullable=True)

    photo_groups = relationship("PhotoGroup", back_populates="creator", lazy="raise")
    contributions = relationship("UserContribution", back_populates="user", lazy="raise")

    @property
    def attribution_name(self) -> str:
        return self.display_name or self.name

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
