"""Unified error codes and custom exceptions.

Error kinds and code ranges:
  1xxx: ValidationError    — malformed / out-of-range input (422)
  2xxx: NotFoundError      — referenced entity absent (404)
  3xxx: AuthorizationError — actor lacks the role or ownership (403)
  4xxx: ConflictError      — state precondition violated (409)
  5xxx: Auth/identity      — credentials and tokens (401/403/409)
  9xxx: System             — persistence failures (500, opaque message)
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


# --- Error kinds ---

class ValidationError(AppError):
    def __init__(self, message: str, code: int = 1000) -> None:
        super().__init__(code, message, 422)


class NotFoundError(AppError):
    def __init__(self, message: str, code: int = 2000) -> None:
        super().__init__(code, message, 404)


class AuthorizationError(AppError):
    def __init__(self, message: str, code: int = 3000) -> None:
        super().__init__(code, message, 403)


class ConflictError(AppError):
    def __init__(self, message: str, code: int = 4000) -> None:
        super().__init__(code, message, 409)


class PersistenceError(AppError):
    """Store failure. The message never carries driver or SQL detail."""

    def __init__(self) -> None:
        super().__init__(9001, "Internal server error", 500)


# --- 1xxx: Validation ---

class EmptyListingNameError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Listing name must not be empty", 1001)


class NegativePriceError(ValidationError):
    def __init__(self, price: object) -> None:
        super().__init__(f"Price must not be negative, got {price}", 1002)


class InvalidQuantityError(ValidationError):
    def __init__(self, quantity: int, maximum: int) -> None:
        super().__init__(f"Quantity must be between 1 and {maximum}, got {quantity}", 1003)


class SelfPurchaseError(ValidationError):
    def __init__(self) -> None:
        super().__init__("You cannot buy your own listing", 1004)


class InvalidStatusTransitionError(ValidationError):
    def __init__(self, status: str) -> None:
        super().__init__(
            f"Invalid target status: {status} (expected completed or cancelled)", 1005
        )


class TotalPriceTooLargeError(ValidationError):
    def __init__(self, total: object) -> None:
        super().__init__(f"Order total {total} exceeds the largest storable amount", 1007)


class CurrentPasswordRequiredError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Current password is required to set a new password", 1008)


class EmptyProfileUpdateError(ValidationError):
    def __init__(self) -> None:
        super().__init__("No profile fields were supplied", 1009)


# --- 2xxx: Not found ---

class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(f"Listing not found: {listing_id}", 2001)


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction not found: {transaction_id}", 2002)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}", 2003)


# --- 3xxx: Authorization ---

class NotListingOwnerError(AuthorizationError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(f"Only the owner can modify listing {listing_id}", 3001)


class NotTransactionPartyError(AuthorizationError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            f"Only the buyer or seller can access transaction {transaction_id}", 3002
        )


class NotSellerError(AuthorizationError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            f"Only the seller can change the status of transaction {transaction_id}", 3003
        )


class PasswordMismatchError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__("Password verification failed", 3004)


# --- 4xxx: Conflict ---

class ListingUnavailableError(ConflictError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(f"Item unavailable: listing {listing_id} is already sold", 4001)


class ListingHasActiveTransactionError(ConflictError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(
            f"Listing {listing_id} has a pending transaction and cannot be deleted", 4002
        )


class TransactionAlreadyTerminalError(ConflictError, ValidationError):
    """Terminal transactions reject re-transition: both a conflict and invalid input."""

    def __init__(self, transaction_id: str, status: str) -> None:
        AppError.__init__(
            self,
            4003,
            f"Transaction {transaction_id} is already {status} and cannot change status",
            409,
        )


# --- 5xxx: Auth/identity ---

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(5001, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(5002, "Invalid email or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(5003, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(5004, "Refresh token is invalid or expired", 401)
