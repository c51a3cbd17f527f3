"""
Simulated on-chain verification of platform-fee payments.

Nothing here talks to a chain. The outcome is decided by the transaction hash:
hashes shorter than 10 characters, starting with ``0x00`` or malformed for the
network are not found; hashes starting with ``0x11`` carry too little value;
anything else verifies for the expected amount.
"""
import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from ..config import PAYMENT_VERIFY_DELAY_S

logger = logging.getLogger(__name__)

PLATFORM_FEES: dict[str, dict[str, str]] = {
    "ethereum": {"amount": "0.001", "currency": "ETH"},
    "polygon": {"amount": "0.001", "currency": "MATIC"},
    "solana": {"amount": "0.01", "currency": "SOL"},
}

PLATFORM_ADDRESSES: dict[str, str] = {
    "ethereum": "0x742d35Cc6665C90532d8EcEc5D0E8eC41c1E8B96",
    "polygon": "0x742d35Cc6665C90532d8EcEc5D0E8eC41c1E8B96",
    "solana": "GvH8K5K5K5K5K5K5K5K5K5K5K5K5K5K5K5K5K5K5K5",
}

_SIMULATED_SENDER = "0x1234567890123456789012345678901234567890"
_SIMULATED_SHORT_AMOUNT = "0.0005"

_EVM_TX_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")
_SOLANA_SIG_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{87,88}$")


@dataclass
class TransactionVerification:
    is_valid: bool
    amount: str
    currency: str
    network: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    from_address: str = ""
    to_address: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = {
            "isValid": self.is_valid,
            "amount": self.amount,
            "currency": self.currency,
            "network": self.network,
            "timestamp": self.timestamp.isoformat(),
            "fromAddress": self.from_address,
            "toAddress": self.to_address,
        }
        if self.error:
            out["error"] = self.error
        return out


def get_platform_fee(network: str) -> dict[str, str]:
    """Fee for the network; unknown networks fall back to Ethereum."""
    return dict(PLATFORM_FEES.get((network or "").strip().lower(), PLATFORM_FEES["ethereum"]))


def validate_transaction_hash(tx_hash: str, network: str) -> bool:
    net = (network or "").strip().lower()
    if net in ("ethereum", "polygon"):
        return bool(_EVM_TX_RE.match(tx_hash or ""))
    if net == "solana":
        return bool(_SOLANA_SIG_RE.match(tx_hash or ""))
    return False


def _parse_amount(amount: Any) -> Decimal | None:
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def format_currency_amount(amount: Any, currency: str) -> str:
    value = _parse_amount(amount) or Decimal(0)
    cur = (currency or "").upper()
    if cur in ("ETH", "MATIC"):
        return f"{value:.6f} {cur}"
    if cur == "SOL":
        return f"{value:.4f} {cur}"
    return f"{value.normalize()} {cur}"


def is_valid_payment_amount(amount: Any, currency: str, network: str) -> bool:
    """True when `amount` is in the network's fee currency and covers the fee."""
    fee = get_platform_fee(network)
    paid = _parse_amount(amount)
    if paid is None:
        return False
    return (currency or "").upper() == fee["currency"] and paid >= Decimal(fee["amount"])


async def verify_transaction(
    tx_hash: str,
    expected_amount: str,
    expected_currency: str,
    network: str,
) -> TransactionVerification:
    logger.info(
        "Verifying transaction %s for %s %s on %s",
        tx_hash,
        expected_amount,
        expected_currency,
        network,
    )
    if PAYMENT_VERIFY_DELAY_S > 0:
        await asyncio.sleep(PAYMENT_VERIFY_DELAY_S)

    tx_hash = (tx_hash or "").strip()
    to_address = PLATFORM_ADDRESSES.get((network or "").strip().lower(), "")

    if len(tx_hash) < 10 or tx_hash.startswith("0x00"):
        return TransactionVerification(
            is_valid=False,
            amount="0",
            currency=expected_currency,
            network=network,
            error="Transaction not found or invalid hash",
        )

    if not validate_transaction_hash(tx_hash, network):
        return TransactionVerification(
            is_valid=False,
            amount="0",
            currency=expected_currency,
            network=network,
            error=f"Invalid transaction hash format for {network}",
        )

    if tx_hash.startswith("0x11"):
        return TransactionVerification(
            is_valid=False,
            amount=_SIMULATED_SHORT_AMOUNT,
            currency=expected_currency,
            network=network,
            from_address=_SIMULATED_SENDER,
            to_address=to_address,
            error="Insufficient payment amount",
        )

    return TransactionVerification(
        is_valid=True,
        amount=str(expected_amount),
        currency=expected_currency,
        network=network,
        from_address=_SIMULATED_SENDER,
        to_address=to_address,
    )
