"""Error taxonomy and retry handling for the portal core."""

import random
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type

from sqlalchemy.exc import OperationalError

from .config import settings
from .logging import get_logger

logger = get_logger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels for classification and handling."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification and routing."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    BUSINESS_LOGIC = "business_logic"


@dataclass
class ErrorContext:
    """Context information for error handling and logging."""
    operation: str
    component: str
    user_id: Optional[str] = None
    additional_data: Optional[Dict[str, Any]] = None


@dataclass
class RetryConfig:
    """Configuration for retry mechanisms."""
    max_attempts: int = 3
    base_delay: float = 0.05
    max_delay: float = 2.0
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_exceptions: Tuple[Type[Exception], ...] = (OperationalError,)

    @classmethod
    def from_settings(cls) -> "RetryConfig":
        return cls(
            max_attempts=settings.max_retry_attempts,
            base_delay=settings.retry_base_delay,
        )


class PortalError(Exception):
    """Base exception class for recruiting portal errors."""

    code = "portal_error"

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging and API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "operation": self.context.operation if self.context else None,
        }


class NotFoundError(PortalError):
    """Referenced application, question, cycle or note does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: Any, **kwargs):
        super().__init__(
            f"{entity} with ID {entity_id} not found",
            ErrorCategory.NOT_FOUND,
            ErrorSeverity.LOW,
            **kwargs
        )
        self.entity = entity
        self.entity_id = entity_id


class AlreadySubmittedError(PortalError):
    """Mutation attempted on an application that has left DRAFT."""

    code = "already_submitted"

    def __init__(self, application_id: Any, status: str, **kwargs):
        super().__init__(
            f"Application {application_id} already submitted (status {status})",
            ErrorCategory.CONFLICT,
            ErrorSeverity.LOW,
            **kwargs
        )
        self.application_id = application_id
        self.status = status


class NoActiveCycleError(PortalError):
    """Draft save attempted while the organization has no active cycle.

    Soft failure: callers keep their local state and may retry later.
    """

    code = "no_active_cycle"

    def __init__(self, organization_id: Any, **kwargs):
        super().__init__(
            f"No active recruiting cycle found for organization {organization_id}",
            ErrorCategory.CONFLICT,
            ErrorSeverity.LOW,
            **kwargs
        )
        self.organization_id = organization_id


class OutOfRangeError(PortalError):
    """A numeric input (score, ordinal, length) is outside its bounds."""

    code = "out_of_range"

    def __init__(self, field: str, value: Any, minimum: Any, maximum: Any, **kwargs):
        super().__init__(
            f"{field} must be between {minimum} and {maximum}, got {value}",
            ErrorCategory.VALIDATION,
            ErrorSeverity.LOW,
            **kwargs
        )
        self.field = field
        self.value = value
        self.minimum = minimum
        self.maximum = maximum


class EmptyContentError(PortalError):
    """Text input is blank after trimming."""

    code = "empty_content"

    def __init__(self, field: str = "content", **kwargs):
        super().__init__(
            f"{field} must not be blank",
            ErrorCategory.VALIDATION,
            ErrorSeverity.LOW,
            **kwargs
        )
        self.field = field


class ForbiddenError(PortalError):
    """The caller is not allowed to perform the operation."""

    code = "forbidden"

    def __init__(self, message: str = "Access denied", **kwargs):
        super().__init__(
            message,
            ErrorCategory.AUTHORIZATION,
            ErrorSeverity.MEDIUM,
            **kwargs
        )


class InvalidTransitionError(PortalError):
    """Pipeline transition that the state machine never allows (e.g. back to DRAFT)."""

    code = "invalid_transition"

    def __init__(self, from_status: str, to_status: str, **kwargs):
        super().__init__(
            f"Cannot transition application from {from_status} to {to_status}",
            ErrorCategory.BUSINESS_LOGIC,
            ErrorSeverity.LOW,
            **kwargs
        )
        self.from_status = from_status
        self.to_status = to_status


class SubmissionClosedError(PortalError):
    """Submission after the cycle deadline when late submissions are not allowed."""

    code = "submission_closed"

    def __init__(self, cycle_id: Any, deadline: datetime, **kwargs):
        super().__init__(
            f"Recruiting cycle {cycle_id} closed for submissions at {deadline.isoformat()}",
            ErrorCategory.BUSINESS_LOGIC,
            ErrorSeverity.LOW,
            **kwargs
        )
        self.cycle_id = cycle_id
        self.deadline = deadline


class RetryManager:
    """Manages retry logic with exponential backoff and jitter."""

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig.from_settings()
        self.logger = get_logger("retry_manager")

    def retry(
        self,
        func: Callable,
        *args,
        context: Optional[ErrorContext] = None,
        **kwargs
    ) -> Any:
        """Execute function with retry logic.

        The callable must be a complete unit of work that re-reads whatever
        state it depends on; a failed attempt has already been rolled back.

        Raises:
            Last exception if all retries fail
        """
        retry_config = self.config
        operation = context.operation if context else "unknown"

        for attempt in range(retry_config.max_attempts):
            try:
                result = func(*args, **kwargs)

                if attempt > 0:
                    self.logger.info(
                        "Retry succeeded",
                        attempt=attempt + 1,
                        max_attempts=retry_config.max_attempts,
                        operation=operation
                    )

                return result

            except retry_config.retryable_exceptions as e:
                if attempt == retry_config.max_attempts - 1:
                    self.logger.error(
                        "All retry attempts failed",
                        max_attempts=retry_config.max_attempts,
                        final_exception_type=type(e).__name__,
                        final_exception_message=str(e),
                        operation=operation
                    )
                    raise

                delay = self._calculate_delay(attempt, retry_config)
                self.logger.warning(
                    "Retry attempt failed, waiting before next attempt",
                    attempt=attempt + 1,
                    max_attempts=retry_config.max_attempts,
                    delay_seconds=delay,
                    exception_type=type(e).__name__,
                    operation=operation
                )
                time.sleep(delay)

    def _calculate_delay(self, attempt: int, config: RetryConfig) -> float:
        """Calculate delay for retry attempt with exponential backoff and jitter."""
        delay = min(
            config.base_delay * (config.exponential_base ** attempt),
            config.max_delay
        )

        if config.jitter:
            # Add random jitter (±25% of delay)
            jitter_range = delay * 0.25
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0, delay)
