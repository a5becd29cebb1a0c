"""Base Pay payment status client backed by the Base JSON-RPC API."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config import get_settings

logger = logging.getLogger(__name__)

# Retry configuration for transient transport failures
MAX_RETRIES = 3
MIN_WAIT_SECONDS = 0.5
MAX_WAIT_SECONDS = 4

PaymentStatus = Literal["completed", "pending", "failed"]


class PaymentStatusError(Exception):
    """Raised when the payment status cannot be determined."""


@dataclass
class PaymentStatusResult:
    """Payment lifecycle status reported for a transaction."""

    status: PaymentStatus
    transaction_hash: str | None = None
    completed_at: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


class BasePayClient:
    """Reports the status of Base Pay USDC payments.

    A Base Pay payment id is the hash of the on-chain transaction, so the
    status is derived from its receipt: no receipt means the transaction
    is still pending, a successful receipt means completed, and a reverted
    receipt means failed.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize the client.

        Args:
            http_client: Optional HTTP client for testing.
        """
        self.settings = get_settings()
        self._http_client = http_client

    def _rpc_url(self, testnet: bool) -> str:
        return self.settings.base_sepolia_rpc_url if testnet else self.settings.base_rpc_url

    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(multiplier=MIN_WAIT_SECONDS, min=MIN_WAIT_SECONDS, max=MAX_WAIT_SECONDS),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _rpc_call(self, url: str, method: str, params: list[Any]) -> Any:
        """Execute a single JSON-RPC call and return its result."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        if self._http_client is not None:
            response = await self._http_client.post(url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=self.settings.payment_status_timeout_seconds) as client:
                response = await client.post(url, json=payload)

        response.raise_for_status()
        try:
            body = response.json()
        except ValueError as e:
            raise PaymentStatusError(f"RPC {method} returned a non-JSON response") from e

        if not isinstance(body, dict):
            raise PaymentStatusError(f"RPC {method} returned an unexpected response")

        if body.get("error"):
            error = body["error"]
            raise PaymentStatusError(
                f"RPC {method} failed: {error.get('message', error) if isinstance(error, dict) else error}"
            )

        return body.get("result")

    async def _block_timestamp(self, url: str, block_number: str) -> str | None:
        """Look up the ISO timestamp of a block, or None if unavailable."""
        try:
            block = await self._rpc_call(url, "eth_getBlockByNumber", [block_number, False])
        except (httpx.HTTPError, PaymentStatusError) as e:
            logger.warning("Could not fetch block %s timestamp: %s", block_number, str(e))
            return None

        if not isinstance(block, dict) or not block.get("timestamp"):
            return None

        try:
            completed_at = datetime.fromtimestamp(int(block["timestamp"], 16), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            logger.warning("Block %s has a malformed timestamp: %r", block_number, block["timestamp"])
            return None
        return completed_at.isoformat()

    async def get_payment_status(self, payment_id: str, testnet: bool = False) -> PaymentStatusResult:
        """Get the status of a Base Pay payment.

        Args:
            payment_id: Payment id returned by Base Pay (transaction hash).
            testnet: Query Base Sepolia instead of Base mainnet.

        Returns:
            PaymentStatusResult: Reported status with hash and completion time.

        Raises:
            PaymentStatusError: If the RPC endpoint is unreachable or errors.
        """
        url = self._rpc_url(testnet)
        logger.info("Checking payment status for transaction %s (testnet=%s)", payment_id, testnet)

        try:
            receipt = await self._rpc_call(url, "eth_getTransactionReceipt", [payment_id])
        except httpx.HTTPError as e:
            logger.error("Payment status request failed for %s: %s", payment_id, str(e))
            raise PaymentStatusError(f"Payment status request failed: {e}") from e

        if receipt is None:
            return PaymentStatusResult(status="pending", transaction_hash=payment_id)

        if not isinstance(receipt, dict):
            raise PaymentStatusError(f"Unexpected receipt for {payment_id}")

        transaction_hash = receipt.get("transactionHash") or payment_id

        if receipt.get("status") != "0x1":
            logger.info("Transaction %s reverted on-chain", transaction_hash)
            return PaymentStatusResult(status="failed", transaction_hash=transaction_hash)

        completed_at = None
        if receipt.get("blockNumber"):
            completed_at = await self._block_timestamp(url, receipt["blockNumber"])

        return PaymentStatusResult(
            status="completed",
            transaction_hash=transaction_hash,
            completed_at=completed_at,
        )
