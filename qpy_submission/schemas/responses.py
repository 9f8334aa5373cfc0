"""Standardized API Response Schemas"""

from typing import Dict, Generic, TypeVar, Optional

from pydantic import BaseModel


T = TypeVar('T')


class SuccessResponse(BaseModel, Generic[T]):
    """
    Standard success response envelope.

    Example:
        {
            "success": true,
            "data": {...},
            "message": "Operation successful"
        }
    """
    success: bool = True
    data: T
    message: str = "Operation successful"


class ErrorDetail(BaseModel):
    """Error details structure"""
    code: str
    message: str
    fields: Optional[Dict[str, str]] = None


class ErrorResponse(BaseModel):
    """
    Standard error response envelope.

    Example:
        {
            "success": false,
            "error": {
                "code": "QUESTION_NOT_CONFIGURED",
                "message": "No question is set up for assignment 12."
            }
        }
    """
    success: bool = False
    error: ErrorDetail
