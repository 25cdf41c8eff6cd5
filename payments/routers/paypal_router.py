"""
PayPal Payment Router

Relays payroll payments to PayPal Payouts.

Endpoints:
- POST /process-payment - Pay one employee, or several with {"payments": [...]}

Batch requests are processed one record at a time, in order. By default the
first failing record aborts the request (records already sent to PayPal are
not reversed). Set PAYOUT_BATCH_PARTIAL_RESULTS=true to report every record
instead.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from services.payout_errors import PayoutServiceError
from services.paypal import PayPalService

router = APIRouter(tags=["Payments"])
logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "employee_id",
    "employee_name",
    "amount",
    "paypal_email",
    "payment_mode",
    "period_start",
    "period_end",
)


class PayoutResult(BaseModel):
    """Successful payout, echoed back to the caller."""
    success: bool = True
    transaction_id: Any
    status: Optional[Any] = None
    amount: Any
    paypal_email: Any
    employee_name: Any
    timestamp: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    timestamp: str


def utc_timestamp() -> str:
    """UTC ISO-8601 timestamp with milliseconds, e.g. 2026-10-19T12:00:00.123Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_paypal_service(request: Request) -> PayPalService:
    """Dependency: the PayPalService built at startup."""
    return request.app.state.paypal_service


def _is_blank(value: Any) -> bool:
    """None, False, 0, "" and NaN are blank. Empty lists and objects are not."""
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, (list, dict)):
        return False
    return not value


def find_missing_field(record: Mapping[str, Any]) -> Optional[str]:
    """First required field that is absent or blank, in REQUIRED_FIELDS order."""
    for field in REQUIRED_FIELDS:
        if _is_blank(record.get(field)):
            return field
    return None


def _error_body(message: str) -> Dict[str, Any]:
    return ErrorResponse(error=message, timestamp=utc_timestamp()).model_dump()


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=_error_body(message))


def _describe_failure(e: Exception) -> str:
    if isinstance(e, PayoutServiceError):
        logger.error(f"❌ Payment failed [{e.kind}]: {e.provider_body or e.message}")
        return e.client_message()
    logger.exception(f"❌ Unexpected error processing payment: {e}")
    return str(e)


def _as_record(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, dict) else {}


async def _pay(record: Mapping[str, Any], paypal: PayPalService) -> Dict[str, Any]:
    submission = await paypal.send_payout(record)
    logger.info(
        f"Payout {submission.transaction_id} ({submission.status}) sent to "
        f"{record.get('paypal_email')} for {record.get('employee_name')}"
    )
    return PayoutResult(
        transaction_id=submission.transaction_id,
        status=submission.status,
        amount=record.get("amount"),
        paypal_email=record.get("paypal_email"),
        employee_name=record.get("employee_name"),
        timestamp=utc_timestamp(),
    ).model_dump()


def _failed_entry(record: Mapping[str, Any], message: str) -> Dict[str, Any]:
    entry = _error_body(message)
    entry.update(
        amount=record.get("amount"),
        paypal_email=record.get("paypal_email"),
        employee_name=record.get("employee_name"),
    )
    return entry


async def _process_batch(payments: List[Any], paypal: PayPalService) -> JSONResponse:
    partial = paypal.settings.batch_partial_results
    results: List[Dict[str, Any]] = []

    logger.info(f"Processing batch of {len(payments)} payments (partial_results={partial})")

    for index, payment in enumerate(payments, start=1):
        record = _as_record(payment)

        missing = find_missing_field(record)
        if missing:
            message = f"Campo faltante: {missing}"
            if not partial:
                logger.warning(f"Batch record {index} rejected: {message}")
                return _error_response(400, message)
            results.append(_failed_entry(record, message))
            continue

        try:
            results.append(await _pay(record, paypal))
        except Exception as e:
            message = _describe_failure(e)
            if not partial:
                logger.error(f"Batch aborted at record {index} of {len(payments)}")
                return _error_response(500, message)
            results.append(_failed_entry(record, message))

    return JSONResponse(content=results)


@router.post("/process-payment")
async def process_payment(request: Request, paypal: PayPalService = Depends(get_paypal_service)):
    """
    Pay one employee, or a list of employees, through PayPal Payouts.

    **Single payment:**
    ```json
    {
      "employee_id": "EMP-001",
      "employee_name": "Ana Pérez",
      "amount": 150.5,
      "paypal_email": "ana@example.com",
      "payment_mode": "sandbox",
      "period_start": "2026-10-01",
      "period_end": "2026-10-15"
    }
    ```

    **Several payments:** `{"payments": [<payment>, <payment>, ...]}`

    Each payment becomes its own PayPal batch.
    """
    try:
        body = await request.json()
    except ValueError:
        return _error_response(400, "Cuerpo JSON inválido")

    payments = body.get("payments") if isinstance(body, dict) else None
    if isinstance(payments, list):
        return await _process_batch(payments, paypal)

    record = _as_record(body)
    missing = find_missing_field(record)
    if missing:
        return _error_response(400, f"Campo faltante: {missing}")

    try:
        result = await _pay(record, paypal)
    except Exception as e:
        return _error_response(500, _describe_failure(e))

    return JSONResponse(content=result)
