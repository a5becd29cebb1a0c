"""Order payment verification routes."""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.api.deps import PaymentVerifier
from src.api.middleware.error_handler import APIError, failure_response
from src.schemas.common import FailureResponse
from src.schemas.order import VerifyPaymentRequest, VerifyPaymentResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

MISSING_FIELDS_ERROR = "Missing required fields: orderReference and transactionId"


@router.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    responses={
        400: {"model": FailureResponse, "description": "Missing order reference or transaction id"},
        404: {"model": FailureResponse, "description": "Order not found"},
        500: {"model": FailureResponse, "description": "Payment status or order update failed"},
    },
    summary="Verify a Base Pay payment",
    description="Checks the payment status and, once completed, confirms the order, "
    "notifies the shop and the buyer, and credits affiliate commissions.",
)
async def verify_payment(
    data: VerifyPaymentRequest,
    service: PaymentVerifier,
) -> VerifyPaymentResponse | JSONResponse:
    """Verify a payment and confirm the order it pays for.

    Args:
        data: Order reference, payment id and network flag.
        service: Payment verification service.

    Returns:
        VerifyPaymentResponse: Payment status and what this call changed.
    """
    if not data.order_reference or not data.transaction_id:
        return failure_response(status.HTTP_400_BAD_REQUEST, MISSING_FIELDS_ERROR)

    try:
        result = await service.confirm_payment(
            data.order_reference,
            data.transaction_id,
            testnet=bool(data.testnet),
        )
    except APIError as e:
        return failure_response(e.status_code, e.message)
    except Exception as e:
        logger.exception("Payment verification failed for order %s", data.order_reference)
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Internal server error")

    return VerifyPaymentResponse(
        payment_status=result.payment_status,
        order_updated=result.order_updated,
        affiliate_processed=result.affiliate_processed,
    )
