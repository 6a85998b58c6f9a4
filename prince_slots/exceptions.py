from prince_slots.error_codes import ErrorCodes

class AppException(Exception):
    def __init__(self, error_code, status_message, details=None):
        super().__init__(status_message)
        self.error_code = error_code
        self.status_message = status_message
        self.details = details if details is not None else {}

class ValidationException(AppException):
    def __init__(self, status_message="Validation failed", details=None):
        super().__init__(
            error_code=ErrorCodes.VALIDATION_ERROR,
            status_message=status_message,
            details=details
        )

class InsufficientFundsException(AppException):
    def __init__(self, status_message="Insufficient funds", details=None):
        super().__init__(
            error_code=ErrorCodes.INSUFFICIENT_FUNDS,
            status_message=status_message,
            details=details
        )

class ConcurrentSpinException(AppException):
    def __init__(self, status_message="A spin is already in progress", details=None):
        super().__init__(
            error_code=ErrorCodes.CONCURRENT_SPIN_REJECTED,
            status_message=status_message,
            details=details
        )

class GameLogicException(AppException):
    def __init__(self, status_message="Game logic error", details=None):
        super().__init__(
            error_code=ErrorCodes.GAME_LOGIC_ERROR,
            status_message=status_message,
            details=details
        )
