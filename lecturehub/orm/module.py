"""
lecturehub/orm/module.py
Module model - a generated learning module built from lecture photos

A module is identified by its slug. Lessons and exercises are ordered JSON
documents; tags, concepts, prerequisites and learning outcomes are JSON
string arrays kept duplicate-free by the merge engine.

Modules reference photo groups weakly: photo_groups is a list of
PhotoGroup ids with no foreign key and no cascade. A module does not own the
groups it points at.
"""
from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, Index

from lecturehub.core.db_types import UniversalJSON, JSONList
from lecturehub.orm.base import BaseModel


class Module(BaseModel):
    """
    Module represents one generated learning module.

    Fields:
    - slug: Natural key, globally unique, never changed by a merge
    - title / description: Display information
    - lessons / exercises: Ordered JSON lists (existing-then-new on append)
    - tags / concepts / prerequisites / learning_outcomes: JSON string sets
    - estimated_time: Minutes to complete (summed on append)
    - discipline_id: Catalog discipline (nullable)
    - draft: True until published; only non-draft modules are append targets
    - version: Content version tag
    - consolidation: Stored decision, always {"action": "create-new"}
    - photo_groups: Weak references to PhotoGroup ids
    - merge_fingerprints: Content hashes of drafts already appended here
    - created_by / last_updated_by: Acting user ids

    Lifecycle:
    - Saved as a draft by the generator path
    - Becomes non-draft on publish
    - Mutated only by append merges or explicit edits
    - Hard-deleted only by an admin, followed by counter reconciliation
    """
    __tablename__ = "modules"

    slug = Column(String(255), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    lessons = Column(JSONList, nullable=False, default=list)
    exercises = Column(JSONList, nullable=False, default=list)
    tags = Column(JSONList, nullable=False, default=list)
    concepts = Column(JSONList, nullable=False, default=list)
    prerequisites = Column(JSONList, nullable=False, default=list)
    learning_outcomes = Column(JSONList, nullable=False, default=list)
    estimated_time = Column(Integer, nullable=True, comment="Minutes to complete")

    discipline_id = Column(
        String(100),
        ForeignKey("disciplines.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    draft = Column(Boolean, nullable=False, default=True, index=True)
    version = Column(String(20), nullable=False, default="v1")

    course = Column(UniversalJSON, nullable=True)
    source_type = Column(String(50), nullable=False, default="user-upload")
    source_institution = Column(String(255), nullable=True)
    contributor = Column(String(255), nullable=True)
    original_photos = Column(UniversalJSON, nullable=True)
    generation_context = Column(UniversalJSON, nullable=True)
    consolidation = Column(UniversalJSON, nullable=True)

    photo_groups = Column(JSONList, nullable=False, default=list)
    merge_fingerprints = Column(JSONList, nullable=False, default=list)

    created_by = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    last_updated_by = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    __table_args__ = (
        Index("ix_modules_discipline_draft", "discipline_id", "draft"),
        Index("ix_modules_created_at", "created_at"),
    )

    def __repr__(self):
        return (
            f"<Module("
            f"slug={self.slug}, "
            f"discipline={self.discipline_id}, "
            f"draft={self.draft})>"
        )

    def to_summary(self):
        """Lightweight shape used for consolidation context (no bodies)"""
        return {
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "concepts": list(self.concepts or []),
            "tags": list(self.tags or []),
        }

    def to_dict(self):
        """Convert model to dictionary for API responses"""
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "lessons": list(self.lessons or []),
            "exercises": list(self.exercises or []),
            "tags": list(self.tags or []),
            "concepts": list(self.concepts or []),
            "prerequisites": list(self.prerequisites or []),
            "learning_outcomes": list(self.learning_outcomes or []),
            "estimated_time": self.estimated_time,
            "discipline": self.discipline_id,
            "draft": self.draft,
            "version": self.version,
            "course": self.course,
            "source": {
                "type": self.source_type,
                "institution": self.source_institution,
                "contributor": self.contributor,
            },
            "original_photos": self.original_photos,
            "consolidation": self.consolidation or {"action": "create-new"},
            "photo_groups": list(self.photo_groups or []),
            "created_by": self.created_by,
            "last_updated_by": self.last_updated_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
