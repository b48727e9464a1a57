"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: User
  2xxx: Account
  3xxx: Market
  4xxx: Order
  9xxx: System

Every error also carries a `kind` from the failure taxonomy
(NotFound / InvalidState / Forbidden / ValidationError / InsufficientFunds /
Conflict / Internal) so callers can branch without knowing individual codes.
"""


class AppError(Exception):
    """Base application error."""

    kind: str = "Internal"

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


class NotFoundError(AppError):
    kind = "NotFound"


class InvalidStateError(AppError):
    kind = "InvalidState"


class ForbiddenError(AppError):
    kind = "Forbidden"


class ValidationError(AppError):
    kind = "ValidationError"


class ConflictError(AppError):
    kind = "Conflict"


# --- 1xxx: User ---

class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1001, f"User not found: {user_id}", 404)


class AdminRequiredError(ForbiddenError):
    def __init__(self) -> None:
        super().__init__(1002, "Admin access required", 403)


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    kind = "InsufficientFunds"

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class AmountOutOfRangeError(ValidationError):
    def __init__(self, amount: int, minimum: int, maximum: int) -> None:
        super().__init__(
            2002, f"Amount {amount} cents must be in [{minimum}, {maximum}]", 400
        )


class PositionNotFoundError(NotFoundError):
    def __init__(self, market_id: str) -> None:
        super().__init__(2003, f"No position in market {market_id}", 404)


# --- 3xxx: Market ---

class MarketNotFoundError(NotFoundError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketNotTradableError(InvalidStateError):
    def __init__(self, market_id: str, status: str) -> None:
        super().__init__(
            3002, f"Market {market_id} is not open for trading (status={status})", 422
        )


class MarketAlreadyResolvedError(InvalidStateError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3003, f"Market already resolved: {market_id}", 422)


class MarketInvalidStatusError(InvalidStateError):
    def __init__(self, market_id: str, status: str, action: str) -> None:
        super().__init__(
            3004, f"Cannot {action} market {market_id} with status {status}", 422
        )


class InvalidTransitionError(InvalidStateError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(3005, f"Invalid market transition: {current} -> {target}", 422)


class InvalidOutcomeError(ValidationError):
    def __init__(self, outcome: str) -> None:
        super().__init__(3006, f"Outcome must be YES, NO or INVALID, got {outcome}", 400)


# --- 4xxx: Order ---

class PriceOutOfRangeError(ValidationError):
    def __init__(self, price: object) -> None:
        super().__init__(4001, f"Price out of range (0, 1): {price}", 400)


class InvalidSideError(ValidationError):
    def __init__(self, side: str) -> None:
        super().__init__(4002, f"Side must be YES or NO, got {side}", 400)


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class OrderForbiddenError(ForbiddenError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4005, f"Order {order_id} belongs to another user", 403)


class OrderNotCancellableError(InvalidStateError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4006, f"Order {order_id} in status {status} cannot be cancelled", 422)


# --- 9xxx: System ---

class TransactionConflictError(ConflictError):
    def __init__(self, attempts: int) -> None:
        super().__init__(
            9001, f"Transaction conflict: gave up after {attempts} attempts", 409
        )


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
