"""
Error taxonomy for the ExoMiner demo.

The core raises plain exceptions; the API layer translates them into a small
error envelope so dashboard clients get a stable payload.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ErrorType
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


def make_error(error_type: ErrorType, message: str, **context: Any) -> ErrorEnvelope:
    return ErrorEnvelope(type=error_type, message=message, context=dict(context))


class InvalidInputError(ValueError):
    """
    Raised when a caller supplies an unusable analysis request.

    Attributes:
        field: Name of the offending input field, if known
        value: The rejected value
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message)

    def to_envelope(self) -> ErrorEnvelope:
        context = {}
        if self.field is not None:
            context['field'] = self.field
            context['value'] = repr(self.value)
        return make_error(ErrorType.INVALID_INPUT, str(self), **context)
