"""FastAPI application entry point."""

import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from photoshelf import __version__
from photoshelf.dependencies import get_db
from photoshelf.routers import images, tags
from photoshelf.settings import settings

app = FastAPI(
    title=settings.app_name,
    description="Personal photo library with filtered image search",
    version=__version__,
    debug=settings.debug,
)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(images.router)
app.include_router(tags.router)


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint with DB connectivity verification."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check failed: %s", exc)
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "photoshelf.api:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
