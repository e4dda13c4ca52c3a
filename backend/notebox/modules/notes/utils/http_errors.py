import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import ProgrammingError

from notebox.core.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger("notes")


def _handle_db_error(exc: Exception) -> None:
    if isinstance(exc, ProgrammingError):
        logger.exception("notes storage error")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notes storage not initialized. Run alembic upgrade head.",
        ) from exc
    logger.exception("notes database error")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    ) from exc


def _handle_notes_error(exc: Exception) -> None:
    detail = str(exc)
    if isinstance(exc, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": detail, "field": exc.field},
        ) from exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from exc
    logger.error("unexpected notes failure: %s", exc.__class__.__name__)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    ) from exc
