"""Router for image listing, detail and image tag operations."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from photoshelf.dependencies import get_db, get_owner
from photoshelf.metadata import Image, ImageExif, ImageTag, Thumbnail, User
from photoshelf.models.requests import AddImageTagRequest, AssignImageTagsRequest, ReplaceImageTagRequest
from photoshelf.routers._shared import serialize_image, serialize_tag
from photoshelf.search import ImageSearch, SearchFailedError
from photoshelf.tags import ImageNotFoundError, InvalidTagError, TagNotFoundError, TagService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["images"]
)


def _get_owned_image(db: Session, owner: User, image_id: int) -> Image:
    image = db.query(Image).options(
        selectinload(Image.tags),
        selectinload(Image.exif),
        selectinload(Image.thumbnail),
    ).filter(
        Image.id == image_id,
        Image.user_id == owner.id,
    ).first()
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


@router.get("/images")
async def list_images(
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
    keyword: Optional[str] = None,
    keyword_mode: Optional[str] = None,  # "and" or "or": keyword vs. other filters
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    taken_start: Optional[str] = None,
    taken_end: Optional[str] = None,
    width_min: Optional[str] = None,
    width_max: Optional[str] = None,
    height_min: Optional[str] = None,
    height_max: Optional[str] = None,
    size_min: Optional[str] = None,  # MB, fractional
    size_max: Optional[str] = None,  # MB, fractional
    tags: Optional[str] = None,  # Comma-separated tag names
    tag_mode: Optional[str] = None,  # "and" or "or": between tags
    page: int = 1,
    page_size: int = Query(20, alias="pageSize"),
):
    """List the owner's images with optional filters, newest first."""
    filters = {
        "keyword": keyword,
        "keyword_mode": keyword_mode,
        "created_start": start_date,
        "created_end": end_date,
        "taken_start": taken_start,
        "taken_end": taken_end,
        "width_min": width_min,
        "width_max": width_max,
        "height_min": height_min,
        "height_max": height_max,
        "size_min": size_min,
        "size_max": size_max,
        "tags": tags,
        "tag_mode": tag_mode,
    }

    try:
        result = ImageSearch(db, owner.id, logger=logger).run(filters, page, page_size)
    except SearchFailedError:
        raise HTTPException(status_code=500, detail="Search failed")

    return {
        "total": result.total,
        "page": result.page,
        "pageSize": result.page_size,
        "items": [serialize_image(image) for image in result.items],
    }


@router.get("/images/{image_id}")
async def get_image(
    image_id: int,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Get a single image with its tags, EXIF and thumbnail reference."""
    return serialize_image(_get_owned_image(db, owner, image_id))


@router.delete("/images/{image_id}")
async def delete_image(
    image_id: int,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Delete an image with its EXIF, thumbnail and tag links."""
    image = db.query(Image.id).filter(
        Image.id == image_id,
        Image.user_id == owner.id,
    ).first()
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")

    try:
        db.query(ImageTag).filter(ImageTag.image_id == image_id).delete(synchronize_session=False)
        db.query(ImageExif).filter(ImageExif.image_id == image_id).delete(synchronize_session=False)
        db.query(Thumbnail).filter(Thumbnail.image_id == image_id).delete(synchronize_session=False)
        db.query(Image).filter(
            Image.id == image_id,
            Image.user_id == owner.id,
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to delete image %s for owner %s: %s", image_id, owner.id, exc)
        raise HTTPException(status_code=500, detail="Failed to delete image")

    return {"status": "deleted", "imageId": image_id}


@router.get("/images/{image_id}/thumbnail")
async def get_thumbnail(
    image_id: int,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Serve the stored JPEG thumbnail."""
    thumbnail = db.query(Thumbnail).join(
        Image, Image.id == Thumbnail.image_id
    ).filter(
        Thumbnail.image_id == image_id,
        Image.user_id == owner.id,
    ).first()
    if not thumbnail or not thumbnail.data:
        raise HTTPException(status_code=404, detail="Thumbnail not found")
    return Response(content=thumbnail.data, media_type="image/jpeg")


@router.post("/images/{image_id}/tags")
async def add_image_tag(
    image_id: int,
    request: AddImageTagRequest,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Tag an image by name, creating an uncolored tag if needed."""
    service = TagService(db, owner.id)
    try:
        tag = service.add_image_tag_by_name(image_id, request.tag_name)
    except ImageNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except InvalidTagError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_tag(tag)


@router.post("/images/{image_id}/tags/assign")
async def assign_image_tags(
    image_id: int,
    request: AssignImageTagsRequest,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Attach existing tags by id and tags by name (created if missing)."""
    if not request.tag_ids and not request.tag_names:
        raise HTTPException(status_code=400, detail="tagIds or tagNames required")

    service = TagService(db, owner.id)
    try:
        tags = [service.assign_tag(image_id, tag_id) for tag_id in dict.fromkeys(request.tag_ids)]
        if request.tag_names:
            tags.extend(service.assign_by_names(image_id, request.tag_names))
    except (ImageNotFoundError, TagNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except InvalidTagError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"assigned": True, "tags": [serialize_tag(tag) for tag in tags]}


@router.put("/images/{image_id}/tags")
async def replace_image_tag(
    image_id: int,
    request: ReplaceImageTagRequest,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Replace one of the image's tags with a tag of another name."""
    service = TagService(db, owner.id)
    try:
        tag = service.replace_image_tag(image_id, request.old_tag_id, request.new_tag_name)
    except (ImageNotFoundError, TagNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except InvalidTagError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_tag(tag)


@router.delete("/images/{image_id}/tags/{tag_id}")
async def remove_image_tag(
    image_id: int,
    tag_id: int,
    owner: User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Remove a tag from an image."""
    service = TagService(db, owner.id)
    try:
        service.remove_tag(image_id, tag_id)
    except ImageNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {"removed": True}
