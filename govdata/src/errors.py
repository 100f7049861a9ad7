"""
Errors Module
Single error type for the FPDS client, discriminated by its ``kind``.
"""

from enum import Enum
from typing import List, Optional


class ErrorKind(Enum):
    """Failure categories raised by the client."""
    VALIDATION = "validation"
    REQUEST = "request"
    NETWORK = "network"
    PARSE = "parse"


class GovDataError(Exception):
    """
    Error raised by every layer of the client.

    Callers branch on ``kind`` rather than on subclasses. Kind-specific
    attributes are left as ``None`` when they do not apply:

    - VALIDATION: ``parameter``, ``value``, ``suggestions``
    - REQUEST: ``status_code``
    - NETWORK: ``original_error``
    - PARSE: ``original_error``
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        parameter: Optional[str] = None,
        value: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.parameter = parameter
        self.value = value
        self.suggestions = suggestions or []
        self.original_error = original_error

    @classmethod
    def validation(cls, parameter: str, value: str, suggestions: Optional[List[str]] = None) -> "GovDataError":
        return cls(
            ErrorKind.VALIDATION,
            f"Invalid value for {parameter}: {value}",
            parameter=parameter,
            value=value,
            suggestions=suggestions
        )

    @classmethod
    def request(cls, message: str, status_code: Optional[int] = None) -> "GovDataError":
        return cls(ErrorKind.REQUEST, message, status_code=status_code)

    @classmethod
    def network(cls, message: str, original_error: Optional[BaseException] = None) -> "GovDataError":
        return cls(ErrorKind.NETWORK, message, original_error=original_error)

    @classmethod
    def parse(cls, message: str, original_error: Optional[BaseException] = None) -> "GovDataError":
        return cls(ErrorKind.PARSE, message, original_error=original_error)

    @property
    def retryable(self) -> bool:
        """Whether the transport retry loop treats this error as transient."""
        return self.kind in (ErrorKind.REQUEST, ErrorKind.NETWORK)

    def __repr__(self) -> str:
        return f"GovDataError(kind={self.kind.value!r}, message={self.message!r})"
