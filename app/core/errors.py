from fastapi import HTTPException, status


class FieldEngineError(HTTPException):
    """Base for errors raised by the field/placement engine."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail):
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationError(FieldEngineError):
    """Malformed or missing input. Carries every issue found, not just the first."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, issues: list[str] | str, message: str = "Validation failed"):
        if isinstance(issues, str):
            issues = [issues]
        self.issues = list(issues)
        super().__init__({"message": message, "issues": self.issues})


class NotFound(FieldEngineError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(FieldEngineError):
    status_code = status.HTTP_409_CONFLICT


class StorageError(FieldEngineError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
