"""Test configuration and fixtures."""

import os

# Must be set before photoshelf.settings is imported.
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from photoshelf.api import app
from photoshelf.database import get_db
from photoshelf.metadata import Base, Image, ImageExif, ImageTag, Tag, Thumbnail, User

MB = 1024 * 1024


@pytest.fixture
def test_engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def test_db(test_engine):
    """Create test database session."""
    SessionLocal = sessionmaker(bind=test_engine)
    session = SessionLocal()

    yield session

    session.close()


@pytest.fixture
def owner(test_db: Session) -> User:
    user = User(username="alice", email="alice@example.com", password_hash="x")
    test_db.add(user)
    test_db.commit()
    test_db.refresh(user)
    return user


@pytest.fixture
def other_owner(test_db: Session) -> User:
    user = User(username="bob", email="bob@example.com", password_hash="x")
    test_db.add(user)
    test_db.commit()
    test_db.refresh(user)
    return user


@pytest.fixture
def make_tag(test_db: Session):
    """Factory creating a tag for an owner."""

    def _make_tag(owner: User, name: str, color: str = "") -> Tag:
        tag = Tag(user_id=owner.id, name=name, color=color)
        test_db.add(tag)
        test_db.commit()
        test_db.refresh(tag)
        return tag

    return _make_tag


@pytest.fixture
def make_image(test_db: Session):
    """Factory creating an image with optional EXIF, thumbnail and tags.

    Tag names are resolved against the owner's catalog; missing tags are
    created uncolored.
    """

    def _make_image(
        owner: User,
        filename: str,
        *,
        created_at: datetime = None,
        width: int = 800,
        height: int = 600,
        file_size: int = MB,
        taken_at: datetime = None,
        with_exif: bool = False,
        thumbnail: bytes = None,
        tags=(),
    ) -> Image:
        image = Image(
            user_id=owner.id,
            original_filename=filename,
            stored_filename=f"stored-{filename}",
            file_path=f"/uploads/{owner.id}/{filename}",
            mime_type="image/jpeg",
            file_size=file_size,
            width=width,
            height=height,
            created_at=created_at or datetime(2024, 1, 1, 12, 0, 0),
        )
        test_db.add(image)
        test_db.flush()

        if taken_at is not None or with_exif:
            test_db.add(ImageExif(
                image_id=image.id,
                camera_make="Canon",
                camera_model="EOS R6",
                taken_at=taken_at,
            ))

        if thumbnail is not None:
            test_db.add(Thumbnail(
                image_id=image.id,
                data=thumbnail,
                width=200,
                height=150,
                size=len(thumbnail),
            ))

        for name in tags:
            tag = test_db.query(Tag).filter(Tag.user_id == owner.id, Tag.name == name).first()
            if not tag:
                tag = Tag(user_id=owner.id, name=name, color="")
                test_db.add(tag)
                test_db.flush()
            test_db.add(ImageTag(image_id=image.id, tag_id=tag.id))

        test_db.commit()
        test_db.refresh(image)
        return image

    return _make_image


@pytest.fixture
def client(test_db: Session):
    """API client bound to the test session."""

    def _override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(owner: User) -> dict:
    return {"X-User-ID": str(owner.id)}
