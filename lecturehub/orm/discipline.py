"""
lecturehub/orm/discipline.py
Discipline catalog model

Disciplines are pre-seeded catalog entries (see lecturehub/seed). They are
never created by the generator path.
"""
from sqlalchemy import Column, Integer, String, Text, Index

from lecturehub.orm.base import Base


class Discipline(Base):
    """
    Discipline catalog entry.

    Fields:
    - id: Stable catalog key (e.g. "mathematics-statistics")
    - name: Display name
    - category: College / grouping key (e.g. "natural-sciences-mathematics")
    - description: Short description for UI cards
    - module_count: Derived count of published modules

    module_count is a derived aggregate. It is only ever written by
    lecturehub.services.discipline_counter, which recomputes it from the
    modules table; nothing increments or decrements it in place.
    """
    __tablename__ = "disciplines"

    id = Column(String(100), primary_key=True)
    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=True, index=True)
    description = Column(Text, nullable=True)
    module_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_disciplines_category_name", "category", "name"),
    )

    def __repr__(self):
        return f"<Discipline(id={self.id}, module_count={self.module_count})>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "module_count": self.module_count,
        }
