"""Pydantic request models for API endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field


class CreateTagRequest(BaseModel):
    """Request model for creating a tag manually."""
    name: str = Field(..., min_length=1, max_length=50)
    color: str


class UpdateTagColorRequest(BaseModel):
    """Request model for changing a tag's color."""
    color: Optional[str] = ""


class AddImageTagRequest(BaseModel):
    """Request model for tagging an image by name."""
    tag_name: str = Field(..., alias="tagName", min_length=1, max_length=50)


class ReplaceImageTagRequest(BaseModel):
    """Request model for swapping one image tag for another."""
    old_tag_id: int = Field(..., alias="oldTagId")
    new_tag_name: str = Field(..., alias="newTagName", min_length=1, max_length=50)


class AssignImageTagsRequest(BaseModel):
    """Request model for attaching several tags to an image at once.

    Tags may be given by id (must exist) or by name (created uncolored
    when missing).
    """
    tag_ids: List[int] = Field(default_factory=list, alias="tagIds")
    tag_names: List[str] = Field(default_factory=list, alias="tagNames")
