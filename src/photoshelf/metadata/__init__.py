"""Image library storage models."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class User(Base):
    """Library owner. Credentials are managed outside this service."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(100), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    images = relationship("Image", back_populates="owner", cascade="all, delete-orphan")


class Image(Base):
    """Uploaded image and its file properties."""

    __tablename__ = "images"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # File information
    original_filename = Column(String(255), nullable=False)
    stored_filename = Column(String(255))
    file_path = Column(String(500))
    mime_type = Column(String(50))
    file_size = Column(BigInteger, nullable=False, default=0)

    # Image properties
    width = Column(Integer, nullable=False, default=0)
    height = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="images")
    exif = relationship("ImageExif", back_populates="image", uselist=False, cascade="all, delete-orphan")
    thumbnail = relationship("Thumbnail", back_populates="image", uselist=False, cascade="all, delete-orphan")
    tags = relationship("Tag", secondary="image_tags", back_populates="images", order_by="Tag.name")

    __table_args__ = (
        Index("idx_images_user_created", "user_id", "created_at"),
        Index("idx_images_user_filename", "user_id", "original_filename"),
    )


class ImageExif(Base):
    """EXIF metadata extracted at upload time. Not every image has one."""

    __tablename__ = "image_exif"

    id = Column(Integer, primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False, unique=True)

    camera_make = Column(String(100))
    camera_model = Column(String(100))
    taken_at = Column(DateTime, nullable=True, index=True)
    latitude = Column(Float)
    longitude = Column(Float)
    location_name = Column(String(200))
    orientation = Column(Integer)
    iso = Column(Integer)
    aperture = Column(String(20))
    shutter_speed = Column(String(20))
    focal_length = Column(String(20))
    flash = Column(String(50))
    additional_raw = Column(Text)  # Remaining EXIF fields as JSON text

    image = relationship("Image", back_populates="exif")


class Thumbnail(Base):
    """Pre-rendered JPEG preview for an image."""

    __tablename__ = "thumbnails"

    id = Column(Integer, primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False, unique=True)
    data = Column(LargeBinary)
    width = Column(Integer)
    height = Column(Integer)
    size = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow)

    image = relationship("Image", back_populates="thumbnail")


class Tag(Base):
    """User-defined tag. An empty color means the tag is uncolored."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(50), nullable=False)
    color = Column(String(7), nullable=False, default="")

    created_at = Column(DateTime, default=datetime.utcnow)

    images = relationship("Image", secondary="image_tags", back_populates="tags")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
    )


class ImageTag(Base):
    """Image/tag association."""

    __tablename__ = "image_tags"

    id = Column(Integer, primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("image_id", "tag_id", name="uq_image_tags_image_tag"),
    )
