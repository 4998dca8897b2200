"""Shared serialization helpers for routers."""

from datetime import datetime
from typing import Optional

from photoshelf.metadata import Image, ImageExif, Tag, Thumbnail


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_tag(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "userId": tag.user_id,
        "name": tag.name,
        "color": tag.color or "",
        "createdAt": _isoformat(tag.created_at),
    }


def serialize_exif(exif: Optional[ImageExif]) -> Optional[dict]:
    if exif is None:
        return None
    return {
        "id": exif.id,
        "imageId": exif.image_id,
        "cameraMake": exif.camera_make or "",
        "cameraModel": exif.camera_model or "",
        "takenAt": _isoformat(exif.taken_at),
        "latitude": exif.latitude,
        "longitude": exif.longitude,
        "locationName": exif.location_name or "",
        "orientation": exif.orientation,
        "iso": exif.iso,
        "aperture": exif.aperture or "",
        "shutterSpeed": exif.shutter_speed or "",
        "focalLength": exif.focal_length or "",
        "flash": exif.flash or "",
    }


def serialize_thumbnail(thumbnail: Optional[Thumbnail]) -> Optional[dict]:
    """Thumbnail reference; the bytes are served by the thumbnail endpoint."""
    if thumbnail is None:
        return None
    return {
        "id": thumbnail.id,
        "imageId": thumbnail.image_id,
        "width": thumbnail.width,
        "height": thumbnail.height,
        "size": thumbnail.size,
        "url": f"/api/v1/images/{thumbnail.image_id}/thumbnail",
    }


def serialize_image(image: Image) -> dict:
    return {
        "id": image.id,
        "userId": image.user_id,
        "originalFilename": image.original_filename,
        "storedFilename": image.stored_filename,
        "mimeType": image.mime_type,
        "fileSize": image.file_size,
        "width": image.width,
        "height": image.height,
        "createdAt": _isoformat(image.created_at),
        "updatedAt": _isoformat(image.updated_at),
        "exif": serialize_exif(image.exif),
        "tags": [serialize_tag(tag) for tag in image.tags],
        "thumbnail": serialize_thumbnail(image.thumbnail),
    }
