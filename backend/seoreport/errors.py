"""
Application error taxonomy. Every error maps to one HTTP status and is
rendered as {"error": message} by the handlers registered in main.py.
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, issues: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.issues = issues or []

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.issues:
            body["issues"] = self.issues
        return body


class ConflictError(AppError):
    status_code = 409
    default_message = "Duplicate data found."
