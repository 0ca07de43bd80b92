"""
Standardized exception hierarchy for the reward engine
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class RewardEngineError(Exception):
    """
    Base exception for all reward engine errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise RewardEngineError(
            message="Failed to persist progression state",
            operation="record_action",
            context={"action": "completedJournalEntry"}
        )
    """

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "Something went wrong with your rewards. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(RewardEngineError):
    """
    Raised when caller input fails validation

    Example:
        raise ValidationError(
            message="Unknown action",
            field="action",
            value="danceParty"
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


class InvalidActionError(ValidationError):
    """A synthetic or unknown action was passed to the ledger"""

    def __init__(self, action: Any, **kwargs):
        super().__init__(
            message=f"Action '{action}' cannot be recorded directly",
            field="action",
            value=str(action),
            **kwargs
        )


# ==========================================
# Persistence Errors
# ==========================================

class PersistenceError(RewardEngineError):
    """
    Base class for key-value store errors
    """
    pass


class StorageReadError(PersistenceError):
    """Reading persisted state failed"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        **kwargs
    ):
        self.key = key
        super().__init__(
            message=message,
            user_message="We couldn't load your saved progress.",
            context={"key": key},
            **kwargs
        )


class StorageWriteError(PersistenceError):
    """Writing persisted state failed"""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        **kwargs
    ):
        self.path = path
        super().__init__(
            message=message,
            user_message="Your progress was kept but could not be saved yet.",
            context={"path": path},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(RewardEngineError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The reward engine is not properly configured.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_storage_exception(
    error: Exception,
    operation: str,
    path: Optional[str] = None,
    key: Optional[str] = None
) -> PersistenceError:
    """
    Wrap low-level storage exceptions into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed (load/save)
        path: Backing file path if applicable
        key: Store key if applicable

    Returns:
        Appropriate PersistenceError subclass

    Example:
        try:
            path.write_text(payload)
        except OSError as e:
            raise wrap_storage_exception(e, operation="save", path=str(path))
    """
    if operation == "load":
        return StorageReadError(
            message=f"Reading stored state failed: {str(error)}",
            key=key,
            operation=operation,
            cause=error
        )

    return StorageWriteError(
        message=f"Writing stored state failed: {str(error)}",
        path=path,
        operation=operation,
        cause=error
    )
