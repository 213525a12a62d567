"""
Error taxonomy for the SD-RP broadcast backend.

Every failure the service knows how to handle is expressed as a
BroadcastError subclass carrying a category, a severity and the HTTP
status the request boundary should answer with.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"           # Expected degradation, request still answered
    MEDIUM = "medium"     # Part of a response had to be defaulted
    HIGH = "high"         # Request could not be served
    CRITICAL = "critical" # Service cannot run


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFIGURATION = "configuration"
    EXTERNAL_API = "external_api"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context information for errors."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: Optional[str] = None
    component: Optional[str] = None
    upstream: Optional[str] = None
    additional_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            'timestamp': self.timestamp.isoformat(),
            'operation': self.operation,
            'component': self.component,
            'upstream': self.upstream,
            **self.additional_data
        }


class BroadcastError(Exception):
    """Base exception for all handled backend errors."""

    http_status = 500

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for structured logging."""
        return {
            'error': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': self.context.to_dict(),
        }


class UpstreamError(BroadcastError):
    """A third-party API failed or answered with a non-success status."""

    http_status = 502

    def __init__(self, message: str, status: Optional[int] = None, **kwargs):
        kwargs.setdefault('category', ErrorCategory.EXTERNAL_API)
        kwargs.setdefault('severity', ErrorSeverity.MEDIUM)
        super().__init__(message, **kwargs)
        self.status = status


class UnauthorizedError(UpstreamError):
    """Upstream rejected the bearer credential even after one refresh."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.AUTHENTICATION)
        super().__init__(message, status=401, **kwargs)


class AuthenticationError(BroadcastError):
    """The client-credentials exchange itself failed."""

    http_status = 503

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.HIGH,
            **kwargs
        )


class RequestValidationError(BroadcastError):
    """Client sent a request missing a required field or parameter."""

    http_status = 400

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            **kwargs
        )


class NotFoundError(BroadcastError):
    """Direct lookup of an unknown identifier."""

    http_status = 404

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            **kwargs
        )


class StorageError(BroadcastError):
    """Snapshot file could not be read or written."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.MEDIUM,
            **kwargs
        )
