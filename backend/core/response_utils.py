"""
Response Utilities

Helper functions for creating the ``{success, data | error, message}``
envelope every endpoint answers with.
"""

from typing import Any, Dict, List, Optional, Tuple

from fastapi import Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Query as SQLQuery


class PaginationParams:
    """limit/offset pagination parameters for list endpoints"""

    def __init__(
        self,
        limit: int = Query(50, ge=1, le=200, description="Maximum items returned"),
        offset: int = Query(0, ge=0, description="Items to skip"),
    ):
        self.limit = limit
        self.offset = offset

    def paginate_query(self, query: SQLQuery) -> Tuple[List[Any], int]:
        """Apply pagination to SQLAlchemy query and return items and total count"""
        total = query.count()
        items = query.offset(self.offset).limit(self.limit).all()
        return items, total

    def meta(self, total: int) -> Dict[str, Any]:
        return {
            "total": total,
            "limit": self.limit,
            "offset": self.offset,
            "has_more": self.offset + self.limit < total,
        }


def success_response(
    data: Any = None, message: Optional[str] = None, **extra: Any
) -> Dict[str, Any]:
    """Create a standard successful response"""
    body: Dict[str, Any] = {"success": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    body.update(jsonable_encoder(extra))
    return body


def error_response(
    error: str, error_code: Optional[str] = None, **extra: Any
) -> Dict[str, Any]:
    """Envelope for business-rule rejections returned with a 2xx status"""
    body: Dict[str, Any] = {"success": False, "error": error}
    if error_code:
        body["error_code"] = error_code
    body.update(jsonable_encoder(extra))
    return body
