"""
Error taxonomy
Every error raised by the record layer derives from IdeatriumError so the
HTTP boundary can map it to a response envelope with a stable error code.
"""

from typing import List, Optional


class IdeatriumError(Exception):
    """Base class for all application errors"""

    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(IdeatriumError):
    """Malformed input to record fields"""

    code = "validation_error"

    def __init__(self, message: str = "", errors: Optional[List[str]] = None):
        self.errors = errors or ([message] if message else [])
        super().__init__(message or "; ".join(self.errors))


class NotFound(IdeatriumError):
    """Operation targets a nonexistent record"""

    code = "not_found"

    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} not found: {record_id}")


class Unauthenticated(IdeatriumError):
    """Write attempted without an active user session"""

    code = "unauthenticated"

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class BackendError(IdeatriumError):
    """Underlying storage request failed"""

    code = "backend_error"


class AIServiceError(IdeatriumError):
    """Suggestion service failed or returned unparseable content"""

    code = "ai_service_error"
