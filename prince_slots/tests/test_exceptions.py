import pytest
from prince_slots.exceptions import (
    AppException,
    ValidationException,
    InsufficientFundsException,
    ConcurrentSpinException,
    GameLogicException
)
from prince_slots.error_codes import ErrorCodes

def test_app_exception_instantiation():
    details = {"field": "value"}
    exc = AppException(error_code="TEST_001", status_message="Test message", details=details)

    assert exc.error_code == "TEST_001"
    assert exc.status_message == "Test message"
    assert exc.details == details
    assert str(exc) == "Test message"

def test_app_exception_defaults():
    exc = AppException(error_code="TEST_002", status_message="Default test")
    assert exc.details == {}

def test_validation_exception():
    details = {"count": 25}
    exc = ValidationException(status_message="Auto-play count is invalid", details=details)
    assert exc.error_code == ErrorCodes.VALIDATION_ERROR
    assert exc.status_message == "Auto-play count is invalid"
    assert exc.details == details
    with pytest.raises(ValidationException):
        raise exc

def test_insufficient_funds_exception():
    exc = InsufficientFundsException(details={"balance": "5", "required": "10"})
    assert exc.error_code == ErrorCodes.INSUFFICIENT_FUNDS
    assert exc.status_message == "Insufficient funds"
    assert exc.details["required"] == "10"
    with pytest.raises(InsufficientFundsException):
        raise exc

def test_concurrent_spin_exception():
    exc = ConcurrentSpinException()
    assert exc.error_code == ErrorCodes.CONCURRENT_SPIN_REJECTED
    assert exc.status_message == "A spin is already in progress"
    with pytest.raises(ConcurrentSpinException):
        raise exc

def test_game_logic_exception():
    exc = GameLogicException(status_message="No free spins remaining.")
    assert exc.error_code == ErrorCodes.GAME_LOGIC_ERROR
    assert isinstance(exc, AppException)
    with pytest.raises(AppException):
        raise exc
