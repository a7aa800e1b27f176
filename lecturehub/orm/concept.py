"""
lecturehub/orm/concept.py
Concept graph models

- Concept: named idea within a discipline, optionally nested under a parent
- ModuleConcept: many-to-many link between modules (by slug) and concepts
- ConceptPrerequisite: directed "requires" edges between concepts
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from lecturehub.orm.base import Base


class Concept(Base):
    """
    A concept registered under a discipline.

    (name, discipline_id) is unique. parent_concept_id forms a tree; writes
    that would introduce a cycle are rejected by concept_service.
    """
    __tablename__ = "concepts"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    discipline_id = Column(
        String(100),
        ForeignKey("disciplines.id"),
        nullable=True,
        index=True
    )
    parent_concept_id = Column(
        Integer,
        ForeignKey("concepts.id"),
        nullable=True,
        index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    parent = relationship("Concept", remote_side=[id], lazy="raise")

    __table_args__ = (
        UniqueConstraint("name", "discipline_id", name="uq_concept_name_discipline"),
    )

    def __repr__(self):
        return f"<Concept(id={self.id}, name={self.name}, discipline={self.discipline_id})>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "discipline_id": self.discipline_id,
            "parent_concept_id": self.parent_concept_id,
        }


class ModuleConcept(Base):
    """Join row between a module slug and a concept"""
    __tablename__ = "module_concepts"

    module_slug = Column(
        String(255),
        ForeignKey("modules.slug", ondelete="CASCADE"),
        primary_key=True
    )
    concept_id = Column(
        Integer,
        ForeignKey("concepts.id", ondelete="CASCADE"),
        primary_key=True,
        index=True
    )


class ConceptPrerequisite(Base):
    """concept_id requires prerequisite_concept_id"""
    __tablename__ = "concept_prerequisites"

    concept_id = Column(
        Integer,
        ForeignKey("concepts.id", ondelete="CASCADE"),
        primary_key=True
    )
    prerequisite_concept_id = Column(
        Integer,
        ForeignKey("concepts.id", ondelete="CASCADE"),
        primary_key=True,
        index=True
    )
