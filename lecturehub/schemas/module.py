"""
lecturehub/schemas/module.py
Pydantic schemas for generated module drafts

The generator emits camelCase JSON. Every field has a camelCase alias and
accepts the snake_case name too, so drafts can be posted either way.
"""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator


# ================= DRAFT PARTS =================

class DisciplineSelection(BaseModel):
    """Generator's own record of which discipline it picked"""
    selected_discipline_id: str = Field(..., alias="selectedDisciplineId")
    confidence: float = 0.0
    reasoning: str = ""

    class Config:
        populate_by_name = True


class Consolidation(BaseModel):
    """Generator's create-new / append-to decision"""
    action: Literal["create-new", "append-to"] = "create-new"
    target_module_slug: Optional[str] = Field(None, alias="targetModuleSlug")
    reason: Optional[str] = None

    class Config:
        populate_by_name = True


class ModuleSource(BaseModel):
    type: Literal["course-material", "user-upload"] = "user-upload"
    institution: Optional[str] = None
    contributor: Optional[str] = None


# ================= DRAFT =================

class ModuleDraft(BaseModel):
    """
    A generated module before it is validated and persisted.

    lessons and exercises are opaque JSON documents; only their order and
    content hash matter to consolidation.
    """
    slug: str = ""
    title: str = ""
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    course: Optional[Dict[str, Any]] = None
    discipline: Optional[str] = None
    discipline_selection: Optional[DisciplineSelection] = Field(None, alias="disciplineSelection")
    concepts: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    learning_outcomes: List[str] = Field(default_factory=list, alias="learningOutcomes")
    estimated_time: Optional[int] = Field(None, alias="estimatedTime", ge=0)
    source: ModuleSource = Field(default_factory=ModuleSource)
    original_photos: Optional[List[Dict[str, Any]]] = Field(None, alias="originalPhotos")
    consolidation: Consolidation = Field(default_factory=Consolidation)
    lessons: List[Dict[str, Any]] = Field(default_factory=list)
    exercises: List[Dict[str, Any]] = Field(default_factory=list)
    draft: bool = True
    version: str = "v1"

    class Config:
        populate_by_name = True

    @field_validator('slug', 'title', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator('tags', 'concepts', 'prerequisites', 'learning_outcomes', 'lessons', 'exercises', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return [] if v is None else v


# ================= REQUESTS =================

class ModuleUpdate(BaseModel):
    """Explicit edit of a module's display fields"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    discipline: Optional[str] = None
    draft: Optional[bool] = None
