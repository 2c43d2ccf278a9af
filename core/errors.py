"""
Error taxonomy for browser automation, platform adapters and the job store.

Categories:
- BrowserError: automation engine / process / page failures
- PlatformError: adapter-level failures, tagged with the platform
- ApplicationError: job-level orchestration failures, tagged with the job id
- StoreError: backend store failures
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    BROWSER = "browser"
    PLATFORM = "platform"
    AUTH = "auth"
    FORM = "form"
    APPLICATION = "application"
    STORE = "store"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class AutomationError(Exception):
    """Base class for every error raised by the automation core."""

    category = ErrorCategory.UNKNOWN
    code = "AUTOMATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "category": self.category.value,
            "message": str(self),
            "details": self.details,
        }


class BrowserError(AutomationError):
    category = ErrorCategory.BROWSER
    code = "BROWSER_ERROR"


class PlatformError(AutomationError):
    """Adapter failure; str() reads "<platform>: <message>"."""

    category = ErrorCategory.PLATFORM
    code = "PLATFORM_ERROR"

    def __init__(self, platform: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.platform = platform

    def __str__(self):
        return f"{self.platform}: {self.message}"


class LoginError(PlatformError):
    category = ErrorCategory.AUTH
    code = "LOGIN_ERROR"


class UnrecognizedFormStateError(PlatformError):
    category = ErrorCategory.FORM
    code = "UNRECOGNIZED_FORM_STATE"


class FormStepLimitError(UnrecognizedFormStateError):
    code = "FORM_STEP_LIMIT"


class ExternalApplicationError(PlatformError):
    code = "EXTERNAL_APPLICATION"


class ListingsNotFoundError(PlatformError):
    code = "LISTINGS_NOT_FOUND"


class UnsupportedPlatformError(AutomationError):
    category = ErrorCategory.VALIDATION
    code = "UNSUPPORTED_PLATFORM"


class ValidationError(AutomationError):
    category = ErrorCategory.VALIDATION
    code = "VALIDATION_ERROR"


class ApplicationError(AutomationError):
    """Job-level failure; str() reads "Job <id>: <message>"."""

    category = ErrorCategory.APPLICATION
    code = "APPLICATION_ERROR"

    def __init__(self, job_id: Optional[str], message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.job_id = job_id

    def __str__(self):
        return f"Job {self.job_id}: {self.message}"


class StoreError(AutomationError):
    category = ErrorCategory.STORE
    code = "STORE_ERROR"


def wrap_error(error: BaseException, context: str = "") -> AutomationError:
    """Return typed errors unchanged, wrap anything else keeping its message."""
    if isinstance(error, AutomationError):
        return error
    message = str(error) or error.__class__.__name__
    if context:
        message = f"{context}: {message}"
    wrapped = AutomationError(message, {"original_type": error.__class__.__name__})
    wrapped.__cause__ = error
    return wrapped
