"""
Payout error taxonomy.

Every failure raised while processing a payment is a PayoutServiceError
tagged with a kind. The request handler turns them into the uniform
{"success": false, "error": ...} response.
"""

import json
from typing import Any, Optional


class PayoutServiceError(Exception):
    """Base class for payout processing failures"""
    kind = "payout"

    def __init__(self, message: str, provider_body: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.provider_body = provider_body

    def client_message(self) -> str:
        """String shown to API callers. Structured provider bodies are serialized."""
        if isinstance(self.provider_body, (dict, list)):
            return json.dumps(self.provider_body, separators=(",", ":"), ensure_ascii=False)
        return self.message


class PaymentValidationError(PayoutServiceError):
    """Payment record is invalid or incomplete"""
    kind = "validation"

    def __init__(self, message: str = "Datos de pago inválidos o incompletos"):
        super().__init__(message)


class PayPalAuthenticationError(PayoutServiceError):
    """Token exchange with PayPal failed"""
    kind = "authentication"

    def client_message(self) -> str:
        # Provider body is kept for logs only
        return self.message


class PayPalPayoutError(PayoutServiceError):
    """PayPal rejected or failed the payout submission"""
    kind = "payout"


class PayPalNetworkError(PayoutServiceError):
    """Transport failure reaching PayPal"""
    kind = "network"
