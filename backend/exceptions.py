# exceptions.py — Domain error kinds and their HTTP mapping
# Codes follow SF-{DOMAIN}-{NUMBER}; handlers in main.py render them.
from typing import List, Optional, Dict


class AppError(Exception):
    """Base class for errors the API renders as JSON"""
    status_code = 500
    code = "SF-SYS-001"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ValidationError(AppError):
    """Malformed or missing input. Carries every failing field, not just the first."""
    status_code = 400
    code = "SF-VAL-001"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        self.errors = errors
        if message is None:
            fields = ", ".join(e["field"] for e in errors) or "request"
            message = f"Validation error: invalid {fields}"
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}], message=message)

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        errors = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part != "body"]
            errors.append({
                "field": ".".join(loc) or "body",
                "message": str(err.get("msg", "")),
            })
        return cls(errors)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class NotFoundError(AppError):
    status_code = 404
    code = "SF-DB-002"


class ExternalServiceError(AppError):
    """Language-model dependency unreachable, failed, or returned unusable output"""
    status_code = 502
    code = "SF-AI-001"


class StorageError(AppError):
    """The database rejected an operation (constraint violation and the like)"""
    status_code = 500
    code = "SF-DB-003"
