"""
Payout Payload Builder

Turns one internal payment record into a PayPal batch-payout request.

Each record becomes its own single-item batch:
- sender_batch_header: batch id, email subject and message
- items[0]: EMAIL recipient, USD amount, period note, sender item id
"""

import time
import uuid
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from services.payout_errors import PaymentValidationError
from services.paypal_settings import DEFAULT_SENDER_NAME

logger = logging.getLogger(__name__)

CURRENCY = "USD"
RECIPIENT_TYPE = "EMAIL"
TWO_PLACES = Decimal("0.01")


class PayoutAmount(BaseModel):
    value: str
    currency: str = CURRENCY


class PayoutItem(BaseModel):
    recipient_type: str = RECIPIENT_TYPE
    amount: PayoutAmount
    receiver: str
    note: str
    sender_item_id: str


class SenderBatchHeader(BaseModel):
    sender_batch_id: str
    email_subject: str
    email_message: str


class PayoutBatchRequest(BaseModel):
    """Request body for POST /v1/payments/payouts"""
    sender_batch_header: SenderBatchHeader
    items: List[PayoutItem]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _clean(value: Any) -> str:
    """Coerce to string and trim. None becomes empty."""
    if value is None:
        return ""
    return str(value).strip()


def format_amount(value: Any) -> Optional[str]:
    """
    Format an amount with exactly two decimal places.

    Returns None when the value is missing, not a number, not finite,
    or not greater than zero.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    try:
        quantized = amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # more digits than the decimal context can hold
        return None
    if quantized <= 0:
        return None
    return str(quantized)


def generate_sender_batch_id() -> str:
    """Time-based batch id with a random suffix so same-millisecond calls never collide."""
    return f"BATCH-{_now_ms()}-{uuid.uuid4().hex[:8]}"


def build_payout_batch(record: Mapping[str, Any], sender_name: str = DEFAULT_SENDER_NAME) -> PayoutBatchRequest:
    """
    Validate and normalize a payment record into a payout batch request.

    Args:
        record: Raw payment record (employee_id, employee_name, amount,
                paypal_email, period_start, period_end)
        sender_name: Name shown in the recipient email

    Returns:
        PayoutBatchRequest with exactly one item

    Raises:
        PaymentValidationError: If name, email, period bounds or amount are unusable
    """
    employee_name = _clean(record.get("employee_name"))
    paypal_email = _clean(record.get("paypal_email"))
    period_start = _clean(record.get("period_start"))
    period_end = _clean(record.get("period_end"))
    amount_value = format_amount(record.get("amount"))

    if not employee_name or not paypal_email or not period_start or not period_end or amount_value is None:
        logger.warning("Rejected payment record: invalid or incomplete fields")
        raise PaymentValidationError()

    sender_item_id = _clean(record.get("employee_id")) or f"ID-{_now_ms()}"

    return PayoutBatchRequest(
        sender_batch_header=SenderBatchHeader(
            sender_batch_id=generate_sender_batch_id(),
            email_subject=f"Pago de {sender_name} a {employee_name}",
            email_message=f"Has recibido un pago de {sender_name}.",
        ),
        items=[
            PayoutItem(
                amount=PayoutAmount(value=amount_value),
                receiver=paypal_email,
                note=f"Pago correspondiente al período {period_start} - {period_end}",
                sender_item_id=sender_item_id,
            )
        ],
    )


def batch_to_payload(batch: PayoutBatchRequest) -> Dict[str, Any]:
    """JSON-ready dict for the provider."""
    return batch.model_dump()
