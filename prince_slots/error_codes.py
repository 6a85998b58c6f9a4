class ErrorCodes:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    CONCURRENT_SPIN_REJECTED = "CONCURRENT_SPIN_REJECTED"
    INVALID_BET_ADJUSTMENT = "INVALID_BET_ADJUSTMENT"
    BOOST_ACTIVE = "BOOST_ACTIVE"
    GAME_LOGIC_ERROR = "GAME_LOGIC_ERROR"
