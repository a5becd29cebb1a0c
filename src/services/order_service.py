"""Order store operations used by the payment confirmation workflow."""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import status
from supabase import Client

from src.api.middleware.error_handler import APIError
from src.core.supabase import get_supabase_client
from src.models.order import OrderPaymentUpdate

logger = logging.getLogger(__name__)


class OrderUpdateError(APIError):
    """Raised when a payment confirmation cannot be persisted."""

    def __init__(self, message: str = "Failed to update order") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_type="order_update_failed",
        )


class OrderService:
    """Service for reading and confirming storefront orders."""

    def __init__(self, supabase_client: Client | None = None) -> None:
        """Initialize order service.

        Args:
            supabase_client: Optional Supabase client for testing.
        """
        self._supabase_client = supabase_client

    @property
    def supabase(self) -> Client:
        """Get Supabase client."""
        if self._supabase_client is None:
            self._supabase_client = get_supabase_client()
        return self._supabase_client

    async def find_by_reference(self, order_reference: str) -> dict[str, Any] | None:
        """Get an order by its reference.

        Args:
            order_reference: The order's human-shareable reference.

        Returns:
            dict | None: The order row or None if not found.
        """
        response = (
            self.supabase.table("orders")
            .select("*")
            .eq("order_reference", order_reference)
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def mark_payment_confirmed(
        self,
        order_reference: str,
        payment_hash: str,
        completed_at: str | None = None,
    ) -> dict[str, Any] | None:
        """Transition an order to confirmed after a verified payment.

        The update only matches rows that are not yet confirmed, so two
        concurrent confirmations can transition the order at most once.

        Args:
            order_reference: The order's reference.
            payment_hash: Transaction hash proving payment.
            completed_at: Payment completion time, defaults to now.

        Returns:
            dict | None: The updated row, or None if the order was already
            confirmed by another request.

        Raises:
            OrderUpdateError: If the store rejects the update.
        """
        now = datetime.now(timezone.utc).isoformat()
        update_data: OrderPaymentUpdate = {
            "payment_status": "confirmed",
            "order_status": "confirmed",
            "payment_hash": payment_hash,
            "payment_completed_at": completed_at or now,
            "updated_at": now,
        }

        try:
            response = (
                self.supabase.table("orders")
                .update(update_data)
                .eq("order_reference", order_reference)
                .neq("payment_status", "confirmed")
                .execute()
            )
        except Exception as e:
            logger.error(
                "Failed to confirm order %s: %s",
                order_reference,
                str(e),
                extra={"order_reference": order_reference, "update_data": update_data},
            )
            raise OrderUpdateError() from e

        if not response.data:
            logger.info("Order %s was already confirmed, no rows transitioned", order_reference)
            return None

        logger.info("Order %s confirmed with payment hash %s", order_reference, payment_hash)
        return response.data[0]
