"""Pydantic models for API requests."""

from photoshelf.models.requests import (
    AddImageTagRequest,
    AssignImageTagsRequest,
    CreateTagRequest,
    ReplaceImageTagRequest,
    UpdateTagColorRequest,
)

__all__ = [
    "AddImageTagRequest",
    "AssignImageTagsRequest",
    "CreateTagRequest",
    "ReplaceImageTagRequest",
    "UpdateTagColorRequest",
]
