from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

class AppError(Exception):
    def __init__(self, message: str, status_code: int = 500, user_message: Optional[str] = None,
                 code: Optional[Any] = None):
        self.message = message
        self.status_code = status_code
        self.user_message = user_message or "An error occurred. Please try again later."
        self.code = code
        super().__init__(self.message)

class ValidationError(AppError):
    """Rejected submission. `payload` is returned to the caller as-is."""

    def __init__(self, message: str, **extra: Any):
        super().__init__(message, status_code=400, user_message=message)
        self.payload: Dict[str, Any] = {'error': message, **extra}

class ErrorHandler:
    @staticmethod
    def handle_storage_error(error: Exception) -> str:
        logger.error(f"Storage error: {str(error)}")
        return 'failed'

    @staticmethod
    def handle_sms_error(error: Exception) -> Dict[str, Any]:
        logger.error(f"SMS error: {str(error)}")
        return {
            'error': getattr(error, 'message', str(error)),
            'code': getattr(error, 'code', None) or 'unknown'
        }

    @staticmethod
    def handle_feed_error(error: Exception) -> str:
        logger.error(f"Message feed error: {str(error)}")
        return f"Database error: {getattr(error, 'message', None) or str(error)}"
