"""
lecturehub/schemas/attribution.py
Pydantic schemas for photo uploads, publishing and the contribution ledger
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, model_validator

from lecturehub.schemas.module import ModuleDraft


# ================= PHOTOS =================

class PhotoPayload(BaseModel):
    """
    One uploaded photo.

    Either base64 (stored as a data: URL) or an already-hosted url is
    required. file_size falls back to an estimate from the base64 length.
    """
    filename: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field("image/jpeg", alias="mimeType")
    base64: Optional[str] = None
    url: Optional[str] = None
    file_size: Optional[int] = Field(None, alias="fileSize", ge=0)

    class Config:
        populate_by_name = True

    @model_validator(mode='after')
    def require_content(self):
        """Ensure either base64 or url is provided."""
        if not self.base64 and not self.url:
            raise ValueError("Either base64 or url must be provided")
        return self

    def resolved_url(self) -> str:
        if self.base64:
            return f"data:{self.mime_type};base64,{self.base64}"
        return self.url

    def resolved_size(self) -> Optional[int]:
        if self.file_size is not None:
            return self.file_size
        if self.base64:
            return round(len(self.base64) * 0.75)
        return None


class PhotoUploadRequest(BaseModel):
    """Standalone upload into an existing group or a new one"""
    photos: List[PhotoPayload] = Field(..., min_length=1)
    photo_group_id: Optional[str] = Field(None, alias="photoGroupId")
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    discipline_id: Optional[str] = Field(None, alias="disciplineId")

    class Config:
        populate_by_name = True

    @model_validator(mode='after')
    def require_group_or_title(self):
        """A new group needs a title."""
        if not self.photo_group_id and not (self.title and self.title.strip()):
            raise ValueError("Either photoGroupId or title must be provided")
        return self


# ================= PUBLISH =================

class PublishRequest(BaseModel):
    """Publish a generated draft together with the photos it was built from"""
    module: ModuleDraft
    photos: List[PhotoPayload] = Field(default_factory=list)
    generation_context: Optional[Dict[str, Any]] = Field(None, alias="generationContext")
    allowed_module_slugs: Optional[List[str]] = Field(None, alias="allowedModuleSlugs")

    class Config:
        populate_by_name = True


class CompleteAttributionRequest(BaseModel):
    """Retry the link + module-contribution step after a partial failure"""
    photo_group_id: str = Field(..., alias="photoGroupId")

    class Config:
        populate_by_name = True


# ================= USERS =================

class ProfileUpdate(BaseModel):
    display_name: str = Field(..., alias="displayName", min_length=1, max_length=100)

    class Config:
        populate_by_name = True
