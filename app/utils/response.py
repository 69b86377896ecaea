# app/utils/response.py

import math
from typing import TypeVar, Generic, Optional, Dict, Any
from pydantic import BaseModel

from app.constants.error_codes import ErrorCode

T = TypeVar("T")


def success_response(message: str, data: Optional[T] = None) -> Dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "data": data,
    }


def error_response(message: str, error_code: ErrorCode, details=None) -> Dict[str, Any]:
    return {
        "success": False,
        "error": message,
        "error_code": error_code,
        "details": details,
    }


def total_pages(total: int, page_size: int) -> int:
    if not total:
        return 0
    return math.ceil(total / page_size)


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None


class APIErrorResponse(BaseModel):
    success: bool = False
    error: str
    error_code: ErrorCode
    details: Optional[Any] = None
