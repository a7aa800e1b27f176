"""
lecturehub/orm/photo.py
Photo provenance models

- PhotoGroup: a batch of lecture photos uploaded together, owned (for
  attribution) by the user who created it
- Photo: one uploaded image inside a group
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from lecturehub.orm.base import BaseModel, Base, new_uuid


class PhotoGroup(BaseModel):
    """
    PhotoGroup groups the photos behind one publish.

    Title, description and discipline are inherited from the module being
    published. Modules reference groups by id (Module.photo_groups); the
    group itself knows nothing about modules.
    """
    __tablename__ = "photo_groups"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    discipline_id = Column(
        String(100),
        ForeignKey("disciplines.id"),
        nullable=True,
        index=True
    )
    created_by = Column(
        String(36),
        ForeignKey("users.id"),
        nullable=True,
        index=True
    )

    creator = relationship("User", back_populates="photo_groups", lazy="raise")
    photos = relationship(
        "Photo",
        back_populates="photo_group",
        lazy="raise",
        order_by="Photo.uploaded_at"
    )

    def __repr__(self):
        return f"<PhotoGroup(id={self.id}, title={self.title})>"

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "discipline_id": self.discipline_id,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Photo(Base):
    """
    One uploaded image. Immutable after creation; url may hold a data: URL
    for images submitted as base64.
    """
    __tablename__ = "photos"

    id = Column(String(36), primary_key=True, default=new_uuid, index=True)
    photo_group_id = Column(
        String(36),
        ForeignKey("photo_groups.id"),
        nullable=False,
        index=True
    )
    uploaded_by = Column(
        String(36),
        ForeignKey("users.id"),
        nullable=True,
        index=True
    )
    filename = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=True)
    url = Column(Text, nullable=True)
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    photo_group = relationship("PhotoGroup", back_populates="photos", lazy="raise")

    def __repr__(self):
        return f"<Photo(id={self.id}, filename={self.filename})>"

    def to_dict(self):
        return {
            "id": self.id,
            "photo_group_id": self.photo_group_id,
            "uploaded_by": self.uploaded_by,
            "filename": self.filename,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "url": self.url,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
