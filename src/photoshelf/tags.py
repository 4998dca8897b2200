"""Tag catalog management for a single library owner."""

import logging
import re
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from photoshelf.metadata import Image, ImageTag, Tag

logger = logging.getLogger(__name__)

TAG_NAME_MAX_LENGTH = 50
_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


class TagError(Exception):
    """Base error for tag catalog operations."""


class TagNotFoundError(TagError):
    """Tag does not exist for the owner."""


class ImageNotFoundError(TagError):
    """Image does not exist for the owner."""


class DuplicateTagError(TagError):
    """A tag with the same name already exists for the owner."""


class InvalidTagError(TagError):
    """Tag name or color failed validation."""


def validate_color(color: Optional[str]) -> str:
    """Return a normalized color value ('' or '#RRGGBB')."""
    value = (color or "").strip()
    if value and not _COLOR_PATTERN.match(value):
        raise InvalidTagError(f"Invalid tag color: {color!r}")
    return value.upper()


def validate_name(name: Optional[str]) -> str:
    value = (name or "").strip()
    if not value:
        raise InvalidTagError("Tag name is required")
    if len(value) > TAG_NAME_MAX_LENGTH:
        raise InvalidTagError(f"Tag name exceeds {TAG_NAME_MAX_LENGTH} characters")
    return value


class TagService:
    """Owner-scoped tag catalog and image/tag associations."""

    def __init__(self, db: Session, owner_id: int):
        """Initialize tag service.

        Args:
            db: Database session
            owner_id: ID of the user that owns the catalog
        """
        self.db = db
        self.owner_id = owner_id

    def _tag_query(self):
        return self.db.query(Tag).filter(Tag.user_id == self.owner_id)

    def _get_tag(self, tag_id: int) -> Tag:
        tag = self._tag_query().filter(Tag.id == tag_id).first()
        if not tag:
            raise TagNotFoundError(f"Tag {tag_id} not found")
        return tag

    def _get_image(self, image_id: int) -> Image:
        image = self.db.query(Image).filter(
            Image.id == image_id,
            Image.user_id == self.owner_id,
        ).first()
        if not image:
            raise ImageNotFoundError(f"Image {image_id} not found")
        return image

    def _find_by_name(self, name: str) -> Optional[Tag]:
        return self._tag_query().filter(Tag.name == name).first()

    def _link(self, image_id: int, tag_id: int) -> bool:
        """Create the association unless it already exists."""
        exists = self.db.query(ImageTag.id).filter(
            ImageTag.image_id == image_id,
            ImageTag.tag_id == tag_id,
        ).first()
        if exists:
            return False
        self.db.add(ImageTag(image_id=image_id, tag_id=tag_id))
        self.db.flush()
        return True

    def list_tags(self) -> List[Tag]:
        """Return all tags for the owner ordered by name."""
        return self._tag_query().order_by(Tag.name).all()

    def resolve_tags_by_name(self, names: Iterable[str]) -> List[Tag]:
        """Return the existing tags matching the given names.

        Names with no catalog entry are omitted; an empty input returns an
        empty list without querying.
        """
        names = [name for name in names if name]
        if not names:
            return []
        return self._tag_query().filter(Tag.name.in_(names)).all()

    def create_tag(self, name: str, color: Optional[str] = None) -> Tag:
        name = validate_name(name)
        color = validate_color(color)
        if self._find_by_name(name):
            raise DuplicateTagError(f"Tag '{name}' already exists")
        tag = Tag(user_id=self.owner_id, name=name, color=color)
        self.db.add(tag)
        self.db.commit()
        self.db.refresh(tag)
        return tag

    def get_or_create(self, name: str, color: str = "") -> Tag:
        """Find a tag by name, creating an uncolored one when missing."""
        name = validate_name(name)
        tag = self._find_by_name(name)
        if tag:
            return tag
        tag = Tag(user_id=self.owner_id, name=name, color=color)
        self.db.add(tag)
        self.db.flush()
        logger.debug("Created tag %r for owner %s", name, self.owner_id)
        return tag

    def update_color(self, tag_id: int, color: Optional[str]) -> Tag:
        tag = self._get_tag(tag_id)
        tag.color = validate_color(color)
        self.db.commit()
        self.db.refresh(tag)
        return tag

    def delete_tag(self, tag_id: int) -> None:
        """Delete a tag together with all of its image associations."""
        tag = self._get_tag(tag_id)
        self.db.query(ImageTag).filter(ImageTag.tag_id == tag.id).delete(synchronize_session=False)
        self.db.delete(tag)
        self.db.commit()

    def assign_tag(self, image_id: int, tag_id: int) -> Tag:
        self._get_image(image_id)
        tag = self._get_tag(tag_id)
        self._link(image_id, tag.id)
        self.db.commit()
        return tag

    def assign_by_names(self, image_id: int, names: Iterable[str]) -> List[Tag]:
        """Attach tags by name, creating missing tags without a color."""
        self._get_image(image_id)
        unique_names = list(dict.fromkeys(name.strip() for name in names if name and name.strip()))
        tags = []
        for name in unique_names:
            tag = self.get_or_create(name)
            self._link(image_id, tag.id)
            tags.append(tag)
        self.db.commit()
        return tags

    def remove_tag(self, image_id: int, tag_id: int) -> None:
        self._get_image(image_id)
        self.db.query(ImageTag).filter(
            ImageTag.image_id == image_id,
            ImageTag.tag_id == tag_id,
        ).delete(synchronize_session=False)
        self.db.commit()

    def replace_image_tag(self, image_id: int, old_tag_id: int, new_name: str) -> Tag:
        """Swap one tag on an image for another.

        A new tag created here inherits the color of the tag it replaces.
        """
        self._get_image(image_id)
        old_tag = self._get_tag(old_tag_id)
        new_tag = self.get_or_create(new_name, color=old_tag.color or "")

        self.db.query(ImageTag).filter(
            ImageTag.image_id == image_id,
            ImageTag.tag_id == old_tag.id,
        ).delete(synchronize_session=False)
        self._link(image_id, new_tag.id)
        self.db.commit()
        return new_tag

    def add_image_tag_by_name(self, image_id: int, name: str) -> Tag:
        self._get_image(image_id)
        tag = self.get_or_create(name)
        self._link(image_id, tag.id)
        self.db.commit()
        return tag
