"""Affiliate attribution for confirmed orders."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from src.services.affiliate_service import AffiliateService

logger = logging.getLogger(__name__)


@dataclass
class AttributionResult:
    """Counts from one attribution pass over an order's line items."""

    processed: int = 0
    errors: int = 0


def _item_total(item: dict[str, Any]) -> Decimal:
    """Unit price times quantity for a line item."""
    try:
        return Decimal(str(item["price"])) * int(item.get("quantity", 1))
    except (KeyError, InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"Invalid price or quantity on item {item.get('productId')}") from e


class AttributionService:
    """Credits affiliate commissions for the items of a confirmed order.

    Every step is best-effort: a failure on one line item is counted and
    the remaining items are still processed. The ledger's conversion is
    conditional on the click being unconverted, so re-running attribution
    for the same order is safe.
    """

    def __init__(self, affiliate_service: AffiliateService | None = None) -> None:
        """Initialize attribution service.

        Args:
            affiliate_service: Optional affiliate ledger for testing.
        """
        self.affiliate_service = affiliate_service or AffiliateService()

    async def _link_anonymous_clicks(self, order_reference: str, buyer_fid: str) -> None:
        try:
            result = await self.affiliate_service.link_anonymous_clicks_to_fid(buyer_fid)
        except Exception as e:
            logger.error(
                "Linking anonymous clicks failed for order %s: %s",
                order_reference,
                str(e),
                extra={"order_reference": order_reference, "buyer_fid": buyer_fid},
            )
            return

        if not result.success:
            logger.warning(
                "Linking anonymous clicks failed for order %s: %s",
                order_reference,
                result.error,
                extra={"order_reference": order_reference, "buyer_fid": buyer_fid},
            )
        elif result.linked_clicks:
            logger.info("Linked %d anonymous clicks to fid %s", result.linked_clicks, buyer_fid)

    async def _attribute_item(
        self,
        order_reference: str,
        buyer_fid: str,
        item: dict[str, Any],
    ) -> bool:
        """Convert the matching click for one item.

        Returns:
            bool: True if a click converted on this call.
        """
        product_id = item.get("productId")
        if product_id is None:
            raise ValueError("Line item has no productId")

        clicks = await self.affiliate_service.find_affiliate_click(buyer_fid, str(product_id))
        if not clicks:
            logger.debug("No affiliate click for product %s and fid %s", product_id, buyer_fid)
            return False

        click = clicks[0]
        item_total = _item_total(item)

        return await self.affiliate_service.process_conversion(
            click["click_id"],
            order_reference,
            item_total,
        )

    async def attribute(
        self,
        order_reference: str,
        buyer_fid: str,
        line_items: list[dict[str, Any]] | None,
    ) -> AttributionResult:
        """Attribute an order's line items to affiliate clicks.

        Args:
            order_reference: The confirmed order's reference.
            buyer_fid: The buyer's social identity.
            line_items: The order's line items, processed in order.

        Returns:
            AttributionResult: Number of conversions and of failed items.
        """
        result = AttributionResult()
        items = line_items or []

        logger.info(
            "Processing affiliate attribution for order %s (fid %s, %d items)",
            order_reference,
            buyer_fid,
            len(items),
        )

        await self._link_anonymous_clicks(order_reference, buyer_fid)

        for index, item in enumerate(items, start=1):
            try:
                if await self._attribute_item(order_reference, buyer_fid, item):
                    result.processed += 1
            except Exception as e:
                result.errors += 1
                logger.error(
                    "Affiliate attribution failed for item %d of order %s (product %s): %s",
                    index,
                    order_reference,
                    item.get("productId") if isinstance(item, dict) else None,
                    str(e),
                    extra={"order_reference": order_reference, "buyer_fid": buyer_fid},
                )

        logger.info(
            "Affiliate attribution for order %s: %d processed, %d errors",
            order_reference,
            result.processed,
            result.errors,
        )
        return result
