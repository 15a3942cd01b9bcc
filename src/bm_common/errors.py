"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Funds
  3xxx: Market
  4xxx: Validation
  9xxx: System

Category bases (AuthorizationError, InsufficientFundsError, NotFoundError,
StateConflictError, ValidationError) let callers branch on the kind of
failure without listing every concrete error.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class AuthorizationError(AppError):
    def __init__(self, code: int, message: str, http_status: int = 403) -> None:
        super().__init__(code, message, http_status)


class InsufficientFundsError(AppError):
    def __init__(self, code: int, message: str, http_status: int = 422) -> None:
        super().__init__(code, message, http_status)


class NotFoundError(AppError):
    def __init__(self, code: int, message: str, http_status: int = 404) -> None:
        super().__init__(code, message, http_status)


class StateConflictError(AppError):
    """Illegal transition. Expected under races; not a bug."""

    def __init__(self, code: int, message: str, http_status: int = 409) -> None:
        super().__init__(code, message, http_status)


class ValidationError(AppError):
    def __init__(self, code: int, message: str, http_status: int = 422) -> None:
        super().__init__(code, message, http_status)


# --- 1xxx: Auth/User ---

class WalletIdentityMissingError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1001, "Wallet public key required", 401)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1002, f"User not found: {user_id}")


class UnauthorizedSettlementError(AuthorizationError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1003, f"Admin access required to settle markets: {user_id}")


class NotCreatorError(AuthorizationError):
    def __init__(self, market_id: int) -> None:
        super().__init__(1004, f"Only the creator may cancel market {market_id}")


class SelfJoinError(AuthorizationError):
    def __init__(self, market_id: int) -> None:
        super().__init__(1005, f"Cannot join your own market: {market_id}")


class AdminRequiredError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1006, "Admin access required")


# --- 2xxx: Funds ---

class InsufficientBalanceError(InsufficientFundsError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} lamports, available {available} lamports",
        )


# --- 3xxx: Market ---

class MarketNotFoundError(NotFoundError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3001, f"Market not found: {market_id}")


class MarketNotOpenError(StateConflictError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3002, f"Market is not open for joining: {market_id}")


class MarketNotActiveError(StateConflictError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3003, f"Market is not active: {market_id}")


class MarketAlreadyJoinedError(StateConflictError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3004, f"Market already has a counterparty: {market_id}")


class MissingCounterpartyError(StateConflictError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3005, f"Market must have a counterparty to settle: {market_id}")


# --- 4xxx: Validation ---

class RequestValidationFailedError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(4000, f"Invalid request: {detail}")


class InvalidSettlementValueError(ValidationError):
    def __init__(self, value: str) -> None:
        super().__init__(4001, f"Invalid settlement value: {value}")


class PaymentProofMissingError(ValidationError):
    def __init__(self) -> None:
        super().__init__(4002, "Payment signature is missing or malformed")


class StakeOutOfRangeError(ValidationError):
    def __init__(self, amount: int, minimum: int, maximum: int) -> None:
        super().__init__(
            4003,
            f"Stake {amount} lamports is outside the allowed range "
            f"{minimum}..{maximum} lamports",
        )


class OddsOutOfRangeError(ValidationError):
    def __init__(self, odds_bps: int) -> None:
        super().__init__(4004, f"Odds must be between 0.1 and 10, got {odds_bps} bps")


class InvalidAmountError(ValidationError):
    def __init__(self, value: str) -> None:
        super().__init__(4005, f"Invalid amount: {value!r}")


class InvalidFieldError(ValidationError):
    def __init__(self, field: str, detail: str) -> None:
        super().__init__(4006, f"Invalid {field}: {detail}")


class InvalidStatusFilterError(ValidationError):
    def __init__(self, status: str) -> None:
        super().__init__(4007, f"Unknown market status: {status}")


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
