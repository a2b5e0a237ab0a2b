"""
Error taxonomy for the Energy Trade Hub.

Every failure is synchronous and leaves ledger state unchanged. The
``status_code`` on each class is used by the API layer when rendering the
error; the core itself never inspects it.
"""

from fastapi import status


class EnergyTradeHubError(Exception):
    """Base class for every caller-visible registry error"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error_type: str = "registry_error"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class Unauthorized(EnergyTradeHubError):
    """Role check failed"""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "unauthorized"


class NotOwner(EnergyTradeHubError):
    """Ownership check failed"""

    status_code = status.HTTP_403_FORBIDDEN
    error_type = "not_owner"


class InvalidAmount(EnergyTradeHubError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_type = "invalid_amount"


class InvalidWindow(EnergyTradeHubError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_type = "invalid_window"


class NotFound(EnergyTradeHubError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"


class NotForSale(EnergyTradeHubError):
    status_code = status.HTTP_409_CONFLICT
    error_type = "not_for_sale"


class InsufficientPayment(EnergyTradeHubError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    error_type = "insufficient_payment"


class AlreadyRetired(EnergyTradeHubError):
    status_code = status.HTTP_409_CONFLICT
    error_type = "already_retired"


class PaymentFailed(EnergyTradeHubError):
    """The payment hand-off to the seller reported failure"""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_type = "payment_failed"
