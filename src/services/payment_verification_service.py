"""Payment verification and order confirmation workflow."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable

from fastapi import status

from src.api.middleware.error_handler import APIError, NotFoundError
from src.core.base_pay import BasePayClient, PaymentStatusError
from src.services.attribution_service import AttributionResult, AttributionService
from src.services.email_service import EmailService
from src.services.order_service import OrderService

logger = logging.getLogger(__name__)


class PaymentStatusUnavailableError(APIError):
    """The payment status oracle could not be queried."""

    def __init__(self, message: str = "Failed to verify payment status") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_type="payment_status_unavailable",
        )


class OrderNotFoundError(NotFoundError):
    """No order exists for the given reference."""

    def __init__(self, message: str = "Order not found") -> None:
        super().__init__(message=message)


@dataclass
class PaymentConfirmation:
    """Outcome of a payment verification call."""

    payment_status: str
    order_updated: bool = False
    affiliate_processed: bool = False


@dataclass
class SideEffectResult:
    """Observed outcome of a best-effort side effect."""

    name: str
    ok: bool
    error: str | None = None


class PaymentVerificationService:
    """Confirms paid orders and runs their follow-up side effects.

    Only three failures are terminal for a call: the payment status
    cannot be queried, the order does not exist, or the confirmation
    cannot be persisted. Notifications and affiliate attribution never
    fail a confirmation.
    """

    def __init__(
        self,
        payment_client: BasePayClient | None = None,
        order_service: OrderService | None = None,
        attribution_service: AttributionService | None = None,
        email_service: EmailService | None = None,
    ) -> None:
        """Initialize payment verification service.

        Args:
            payment_client: Optional payment status oracle for testing.
            order_service: Optional order store for testing.
            attribution_service: Optional attribution engine for testing.
            email_service: Optional notification sender for testing.
        """
        self.payment_client = payment_client or BasePayClient()
        self.order_service = order_service or OrderService()
        self.attribution_service = attribution_service or AttributionService()
        self._email_service = email_service

    @property
    def email_service(self) -> EmailService:
        """Get email service."""
        if self._email_service is None:
            self._email_service = EmailService()
        return self._email_service

    async def _run_side_effect(
        self,
        name: str,
        order_reference: str,
        operation: Awaitable[dict[str, Any]],
    ) -> SideEffectResult:
        """Await a side effect and record its outcome without raising."""
        try:
            outcome = await operation
        except Exception as e:
            result = SideEffectResult(name=name, ok=False, error=str(e))
        else:
            if isinstance(outcome, dict) and outcome.get("success") is False:
                result = SideEffectResult(name=name, ok=False, error=outcome.get("error"))
            else:
                result = SideEffectResult(name=name, ok=True)

        if result.ok:
            logger.info("%s sent for order %s", name, order_reference)
        else:
            logger.warning(
                "%s failed for order %s: %s",
                name,
                order_reference,
                result.error,
                extra={"order_reference": order_reference, "side_effect": name, "error": result.error},
            )
        return result

    async def send_notifications(self, order: dict[str, Any], payment_hash: str) -> list[SideEffectResult]:
        """Send admin and customer emails for a confirmed order."""
        order_reference = order.get("order_reference", "")

        try:
            email_service = self.email_service
        except Exception as e:
            logger.warning("Email service unavailable for order %s: %s", order_reference, str(e))
            return [SideEffectResult(name="notifications", ok=False, error=str(e))]

        return list(
            await asyncio.gather(
                self._run_side_effect(
                    "admin notification",
                    order_reference,
                    email_service.send_admin_order_notification(order, payment_hash),
                ),
                self._run_side_effect(
                    "customer confirmation",
                    order_reference,
                    email_service.send_customer_order_confirmation(order, payment_hash),
                ),
            )
        )

    async def _attribute(self, order_reference: str, order: dict[str, Any]) -> AttributionResult:
        buyer_fid = order.get("farcaster_fid")
        if not buyer_fid:
            logger.info("Order %s has no buyer fid, skipping affiliate attribution", order_reference)
            return AttributionResult()

        try:
            return await self.attribution_service.attribute(
                order_reference,
                str(buyer_fid),
                order.get("order_items"),
            )
        except Exception as e:
            logger.error(
                "Affiliate attribution aborted for order %s: %s",
                order_reference,
                str(e),
                extra={"order_reference": order_reference},
            )
            return AttributionResult(errors=1)

    async def confirm_payment(
        self,
        order_reference: str,
        transaction_id: str,
        testnet: bool = False,
    ) -> PaymentConfirmation:
        """Verify a payment and confirm the order it pays for.

        Safe to call repeatedly: once an order is confirmed, later calls
        skip the state transition and notifications and only retry
        affiliate attribution.

        Args:
            order_reference: Reference of the order being paid.
            transaction_id: Base Pay payment id.
            testnet: Verify against the test network.

        Returns:
            PaymentConfirmation: Reported status and what this call changed.

        Raises:
            PaymentStatusUnavailableError: If the payment status cannot be queried.
            OrderNotFoundError: If the order does not exist.
            OrderUpdateError: If the confirmation cannot be persisted.
        """
        try:
            payment = await self.payment_client.get_payment_status(transaction_id, testnet=testnet)
        except PaymentStatusError as e:
            logger.error("Failed to check payment status for order %s: %s", order_reference, str(e))
            raise PaymentStatusUnavailableError() from e

        if not payment.is_completed:
            logger.info("Payment for order %s not completed yet: %s", order_reference, payment.status)
            return PaymentConfirmation(payment_status=payment.status)

        order = await self.order_service.find_by_reference(order_reference)
        if not order:
            logger.warning("Order not found: %s", order_reference)
            raise OrderNotFoundError()

        if order.get("payment_status") == "confirmed" and order.get("payment_hash"):
            logger.info("Order %s already confirmed, retrying affiliate attribution only", order_reference)
            attribution = await self._attribute(order_reference, order)
            return PaymentConfirmation(
                payment_status="completed",
                order_updated=False,
                affiliate_processed=attribution.processed > 0,
            )

        payment_hash = payment.transaction_hash or transaction_id
        completed_at = payment.completed_at or datetime.now(timezone.utc).isoformat()

        updated_order = await self.order_service.mark_payment_confirmed(
            order_reference,
            payment_hash,
            completed_at,
        )

        order_updated = updated_order is not None
        if order_updated:
            await self.send_notifications({**order, **updated_order}, payment_hash)
        else:
            logger.info("Order %s confirmed by a concurrent request, skipping notifications", order_reference)

        attribution = await self._attribute(order_reference, order)

        return PaymentConfirmation(
            payment_status="completed",
            order_updated=order_updated,
            affiliate_processed=attribution.processed > 0,
        )


def get_payment_verification_service() -> PaymentVerificationService:
    """Get payment verification service instance."""
    return PaymentVerificationService()
