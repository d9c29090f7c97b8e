"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account
  6xxx: Purchase
  9xxx: System

Purchase rejections are tagged variants: one subclass per reason, each
carrying only the fields relevant to that failure. `details` is what the
API layer puts into the response `data`.
"""

from typing import Any

from src.om_common.enums import PurchaseRejection


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        reason: str | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.reason = reason
        super().__init__(message)

    @property
    def details(self) -> dict[str, Any] | None:
        if self.reason is None:
            return None
        return {"reason": self.reason}


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired credentials", 401)


# --- 2xxx: Account ---

class UsernameTakenError(AppError):
    def __init__(self, username: str) -> None:
        super().__init__(2004, f"Username already taken: {username}", 409)


class AccountNotFoundError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2005, f"Account not found: {account_id}", 404)


# --- 2xxx / 6xxx: Purchase rejections ---

_REFRESH_MESSAGE = "The price or owner has changed. Please refresh and try again."


class PurchaseError(AppError):
    """Deterministic business-rule rejection. Never retried by the engine."""

    def __init__(
        self, code: int, message: str, http_status: int, reason: PurchaseRejection
    ) -> None:
        super().__init__(code, message, http_status, reason=reason.value)


class UserNotFoundError(PurchaseError):
    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(2002, "User not found", 404, PurchaseRejection.USER_NOT_FOUND)


class UserDeactivatedError(PurchaseError):
    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(
            2003,
            "This user is no longer available",
            422,
            PurchaseRejection.USER_DEACTIVATED,
        )


class InsufficientFundsError(PurchaseError):
    def __init__(self, balance: int, price: int) -> None:
        self.balance = balance
        self.price = price
        super().__init__(
            2001,
            f"Insufficient funds: price {price} cents, balance {balance} cents",
            422,
            PurchaseRejection.INSUFFICIENT_FUNDS,
        )

    @property
    def shortfall(self) -> int:
        return self.price - self.balance

    @property
    def details(self) -> dict[str, Any]:
        return {
            "reason": self.reason,
            "balance": self.balance,
            "price": self.price,
            "shortfall": self.shortfall,
        }


class CannotBuySelfError(PurchaseError):
    def __init__(self) -> None:
        super().__init__(6001, "You can't buy yourself", 422, PurchaseRejection.CANNOT_BUY_SELF)


class AlreadyOwnError(PurchaseError):
    def __init__(self) -> None:
        super().__init__(6002, "You already own this person", 422, PurchaseRejection.ALREADY_OWN)


class StaleDataError(PurchaseError):
    def __init__(
        self, current_price: int, current_owner_id: str | None, current_version: int
    ) -> None:
        self.current_price = current_price
        self.current_owner_id = current_owner_id
        self.current_version = current_version
        super().__init__(6003, _REFRESH_MESSAGE, 409, PurchaseRejection.STALE_DATA)

    @property
    def details(self) -> dict[str, Any]:
        return {
            "reason": self.reason,
            "current_price": self.current_price,
            "current_owner_id": self.current_owner_id,
            "current_version": self.current_version,
        }


class PriceChangedError(PurchaseError):
    def __init__(self, current_price: int) -> None:
        self.current_price = current_price
        super().__init__(6004, _REFRESH_MESSAGE, 409, PurchaseRejection.PRICE_CHANGED)

    @property
    def details(self) -> dict[str, Any]:
        return {"reason": self.reason, "current_price": self.current_price}


class OwnerChangedError(PurchaseError):
    def __init__(self, current_owner_id: str | None) -> None:
        self.current_owner_id = current_owner_id
        super().__init__(6005, _REFRESH_MESSAGE, 409, PurchaseRejection.OWNER_CHANGED)

    @property
    def details(self) -> dict[str, Any]:
        return {"reason": self.reason, "current_owner_id": self.current_owner_id}


# --- 6xxx: Purchase request / idempotency ---

class IdempotencyKeyReusedError(AppError):
    def __init__(self, key: str) -> None:
        super().__init__(
            6006, f"Idempotency key {key} was already used for a different purchase", 409
        )


class InvalidPurchaseRequestError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6007, f"Invalid purchase request: {detail}", 422)


class DuplicateIdempotencyKeyError(AppError):
    def __init__(self, key: str) -> None:
        super().__init__(6008, f"Idempotency key already stored: {key}", 409)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StoreBusyError(AppError):
    """Transient: lock timeout, serialization failure or deadlock.

    Safe to retry with the same idempotency key.
    """

    retryable = True

    def __init__(self, detail: str = "Store is busy, retry the request") -> None:
        super().__init__(9003, detail, 503)
