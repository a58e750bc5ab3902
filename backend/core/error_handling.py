# backend/core/error_handling.py

"""
Error handling utilities for API routes.

``handle_api_errors`` maps database failures onto the API error hierarchy.
``with_demo_fallback`` serves static demonstration data from read-mostly
handlers when the database is unreachable.
"""

from typing import Any, Callable, Dict
from functools import wraps
import inspect
import logging

from fastapi import status
from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from .exceptions import APIError, ConflictError, ValidationError

logger = logging.getLogger(__name__)


def _translate(e: Exception, func_name: str) -> Exception:
    if isinstance(e, IntegrityError):
        logger.error(f"Database integrity error in {func_name}: {str(e.orig)}")
        error_info = str(e.orig).lower() if e.orig else str(e).lower()
        if "unique" in error_info or "duplicate" in error_info:
            return ConflictError(
                "Resource already exists with the provided unique values",
                error_code="UNIQUE_VIOLATION",
            )
        if "foreign key" in error_info:
            return ValidationError(
                "Referenced resource does not exist", error_code="FOREIGN_KEY_VIOLATION"
            )
        return ValidationError("Database constraint violation", error_code="INTEGRITY_ERROR")

    if isinstance(e, DataError):
        logger.error(f"Data error in {func_name}: {str(e.orig)}")
        return ValidationError("Invalid data format or type", error_code="DATA_ERROR")

    if isinstance(e, OperationalError):
        logger.error(f"Database operational error in {func_name}: {str(e.orig)}")
        return APIError(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable",
            error_code="DATABASE_UNAVAILABLE",
        )

    return e


def _rollback(kwargs: Dict[str, Any]) -> None:
    db = kwargs.get("db")
    if db is not None:
        db.rollback()


def handle_api_errors(func: Callable) -> Callable:
    """
    Decorator converting SQLAlchemy errors into API errors.

    Usage:
        @router.post("/items")
        @handle_api_errors
        def create_item(data: ItemCreate, db: Session = Depends(get_db)):
            ...
    """
    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (IntegrityError, DataError, OperationalError) as e:
                _rollback(kwargs)
                raise _translate(e, func.__name__) from e

        return async_wrapper

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (IntegrityError, DataError, OperationalError) as e:
            _rollback(kwargs)
            raise _translate(e, func.__name__) from e

    return sync_wrapper


def with_demo_fallback(demo_factory: Callable[..., Any]) -> Callable:
    """
    Serve ``demo_factory(**kwargs)`` flagged ``demo: true`` when the
    database cannot be reached and DEMO_FALLBACK_ENABLED is set.

    The decorated handler must declare a ``request: Request`` parameter.
    """

    def decorator(func: Callable) -> Callable:
        def fallback(e: OperationalError, kwargs: Dict[str, Any]):
            _rollback(kwargs)
            request = kwargs.get("request")
            settings = request.app.state.settings if request is not None else None
            if settings is None or not settings.demo_fallback_enabled:
                raise _translate(e, func.__name__) from e
            logger.warning(
                f"Database unavailable in {func.__name__}, serving demo data: {str(e.orig)}"
            )
            return {"success": True, "data": demo_factory(**kwargs), "demo": True}

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except OperationalError as e:
                    return fallback(e, kwargs)

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except OperationalError as e:
                return fallback(e, kwargs)

        return sync_wrapper

    return decorator
