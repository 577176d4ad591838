class LoyaltyError(Exception):
    """Base class for loyalty rule failures surfaced to the caller."""

    status_code = 400
    error_code = "LOYALTY_ERROR"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.__class__.__doc__)
        self.detail = detail or self.__class__.__doc__


class InvalidPhone(LoyaltyError):
    """Phone number must contain at least 8 digits."""

    status_code = 400
    error_code = "INVALID_PHONE"


class AccountNotFound(LoyaltyError):
    """No loyalty account exists for this phone number."""

    status_code = 404
    error_code = "ACCOUNT_NOT_FOUND"


class NotEligible(LoyaltyError):
    """Loyalty account is not eligible for this action."""

    status_code = 409
    error_code = "NOT_ELIGIBLE"


class ConfirmationRequired(LoyaltyError):
    """Staff confirmation is required for this action."""

    status_code = 400
    error_code = "CONFIRMATION_REQUIRED"


class PersistenceError(LoyaltyError):
    """Loyalty storage is unavailable."""

    status_code = 503
    error_code = "PERSISTENCE_ERROR"
