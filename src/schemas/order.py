"""Order payment verification request/response schemas."""

from pydantic import BaseModel, ConfigDict, Field


class VerifyPaymentRequest(BaseModel):
    """Body of POST /orders/verify-payment.

    Required fields are validated by the route so a missing field
    produces the storefront's 400 envelope instead of a 422.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    order_reference: str | None = Field(default=None, alias="orderReference", description="Order reference")
    transaction_id: str | None = Field(default=None, alias="transactionId", description="Base Pay payment id")
    testnet: bool | None = Field(default=False, description="Verify against Base Sepolia")


class VerifyPaymentResponse(BaseModel):
    """Successful payment verification response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=True)
    payment_status: str | None = Field(default=None, alias="paymentStatus", description="Reported payment status")
    order_updated: bool | None = Field(default=None, alias="orderUpdated", description="Order confirmed by this call")
    affiliate_processed: bool | None = Field(
        default=None,
        alias="affiliateProcessed",
        description="At least one affiliate commission credited by this call",
    )
