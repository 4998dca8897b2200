"""Shared dependencies for FastAPI endpoints."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from photoshelf.database import get_db
from photoshelf.metadata import User


async def get_owner(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the requesting library owner from the X-User-ID header.

    Token verification happens upstream of this service; the header carries
    the already-authenticated user id.

    Raises:
        HTTPException 400: Header missing or not a valid user id
        HTTPException 404: User not found
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-ID header required",
        )

    try:
        user_id = int(x_user_id.strip())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-ID header must be an integer user id",
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {user_id} not found")
    return user


__all__ = ["get_db", "get_owner"]
