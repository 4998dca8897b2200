"""Router for the owner's tag catalog."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from photoshelf.dependencies import get_db, get_owner
from photoshelf.metadata import User
from photoshelf.models.requests import CreateTagRequest, UpdateTagColorRequest
from photoshelf.routers._shared import serialize_tag
from photoshelf.tags import DuplicateTagError, InvalidTagError, TagNotFoundError, TagService

router = APIRouter(
    prefix="/api/v1",
    tags=["tags"]
)


@router.get("/tags")
async def list_tags(
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """List all tags for the owner."""
    return [serialize_tag(tag) for tag in TagService(db, owner.id).list_tags()]


@router.post("/tags")
async def create_tag(
    request: CreateTagRequest,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Create a tag manually. Manually created tags carry a color."""
    try:
        tag = TagService(db, owner.id).create_tag(request.name, request.color)
    except DuplicateTagError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except InvalidTagError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_tag(tag)


@router.patch("/tags/{tag_id}/color")
async def update_tag_color(
    tag_id: int,
    request: UpdateTagColorRequest,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Change a tag's color; an empty color makes it uncolored."""
    try:
        tag = TagService(db, owner.id).update_color(tag_id, request.color)
    except TagNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except InvalidTagError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_tag(tag)


@router.delete("/tags/{tag_id}")
async def delete_tag(
    tag_id: int,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Delete a tag and detach it from every image."""
    try:
        TagService(db, owner.id).delete_tag(tag_id)
    except TagNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {"deleted": True}
