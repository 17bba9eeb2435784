"""
On-chain verification of crypto payments before TSU is credited.

Ethereum transactions are checked through a JSON-RPC node; Bitcoin
transactions through the Blockstream Esplora HTTP API.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_DOWN, Decimal
from typing import Any, Dict, List, Optional

import httpx

import config

logger = logging.getLogger(__name__)

WEI_PER_ETH = Decimal(10) ** 18
SATS_PER_BTC = Decimal(10) ** 8


class PaymentVerificationError(Exception):
    """The external payment could not be confirmed."""


@dataclass
class VerificationResult:
    crypto_currency: str
    crypto_amount: Decimal
    confirmations: int
    details: Dict[str, Any] = field(default_factory=dict)


def _hex_to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    return int(value, 16)


class EthereumRpcClient:
    def __init__(self, rpc_url: Optional[str] = None, timeout: Optional[float] = None):
        self.rpc_url = rpc_url or config.ETH_RPC_URL
        self.timeout = timeout or config.CHAIN_HTTP_TIMEOUT_SECONDS
        self._next_id = 0

    def call(self, method: str, params: List[Any]) -> Any:
        self._next_id += 1
        payload = {"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params}
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"ETH_RPC_ERROR | method={method} | error={e}")
            raise PaymentVerificationError("Ethereum node unavailable") from e
        if body.get("error"):
            logger.error(f"ETH_RPC_ERROR | method={method} | error={body['error']}")
            raise PaymentVerificationError("Ethereum node returned an error")
        return body.get("result")

    def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.call("eth_getTransactionByHash", [tx_hash])

    def get_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.call("eth_getTransactionReceipt", [tx_hash])

    def block_number(self) -> int:
        return _hex_to_int(self.call("eth_blockNumber", []))

    def chain_id(self) -> int:
        return _hex_to_int(self.call("eth_chainId", []))


class BlockstreamClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or config.BLOCKSTREAM_API_URL).rstrip("/")
        self.timeout = timeout or config.CHAIN_HTTP_TIMEOUT_SECONDS

    def _get(self, path: str) -> httpx.Response:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(f"{self.base_url}{path}")
        except httpx.HTTPError as e:
            logger.error(f"BLOCKSTREAM_ERROR | path={path} | error={e}")
            raise PaymentVerificationError("Bitcoin explorer unavailable") from e
        if response.status_code == 404:
            raise PaymentVerificationError("Bitcoin transaction not found")
        if response.status_code >= 400:
            logger.error(f"BLOCKSTREAM_ERROR | path={path} | status={response.status_code}")
            raise PaymentVerificationError("Bitcoin explorer returned an error")
        return response

    def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        return self._get(f"/tx/{tx_hash}").json()

    def tip_height(self) -> int:
        return int(self._get("/blocks/tip/height").text.strip())


def expected_wei(amount_usd: Decimal, eth_price_usd: Decimal) -> int:
    return int((amount_usd / eth_price_usd * WEI_PER_ETH).to_integral_value(rounding=ROUND_DOWN))


def expected_sats(amount_usd: Decimal, btc_price_usd: Decimal) -> int:
    return int((amount_usd / btc_price_usd * SATS_PER_BTC).to_integral_value(rounding=ROUND_DOWN))


def verify_ethereum_payment(
    *,
    tx_hash: str,
    amount_usd: Decimal,
    eth_price_usd: Decimal,
    expected_recipient: str,
    expected_sender: str,
    client: Optional[EthereumRpcClient] = None,
) -> VerificationResult:
    client = client or EthereumRpcClient()

    tx = client.get_transaction(tx_hash)
    if not tx:
        raise PaymentVerificationError("Ethereum transaction not found")

    receipt = client.get_receipt(tx_hash)
    if not receipt or tx.get("blockNumber") is None:
        raise PaymentVerificationError("Ethereum transaction is not yet mined")
    if _hex_to_int(receipt.get("status")) != 1:
        raise PaymentVerificationError("Ethereum transaction failed on-chain")

    chain_id = client.chain_id()
    if chain_id != config.ETH_CHAIN_ID:
        raise PaymentVerificationError(f"Unexpected Ethereum chain id {chain_id}")

    confirmations = client.block_number() - _hex_to_int(tx["blockNumber"]) + 1
    if confirmations < config.MIN_CONFIRMATIONS:
        raise PaymentVerificationError(
            f"Insufficient confirmations ({confirmations}/{config.MIN_CONFIRMATIONS})"
        )

    if (tx.get("to") or "").lower() != expected_recipient.lower():
        raise PaymentVerificationError("Transaction recipient does not match the TSU receiving address")
    if (tx.get("from") or "").lower() != expected_sender.lower():
        raise PaymentVerificationError("Transaction sender does not match your verified wallet")

    value_wei = _hex_to_int(tx.get("value")) or 0
    required_wei = expected_wei(amount_usd, eth_price_usd)
    minimum_wei = int(Decimal(required_wei) * (Decimal("1") - config.ETH_AMOUNT_TOLERANCE))
    if value_wei < minimum_wei:
        raise PaymentVerificationError("Transaction amount is less than the purchase amount")

    logger.info(
        f"ETH_PAYMENT_VERIFIED | tx={tx_hash} | wei={value_wei} | required_wei={required_wei} | confirmations={confirmations}"
    )
    return VerificationResult(
        crypto_currency="ETH",
        crypto_amount=Decimal(value_wei) / WEI_PER_ETH,
        confirmations=confirmations,
        details={
            "txHash": tx_hash,
            "from": tx.get("from"),
            "to": tx.get("to"),
            "valueWei": str(value_wei),
            "requiredWei": str(required_wei),
            "ethPrice": str(eth_price_usd),
            "confirmations": confirmations,
            "blockNumber": _hex_to_int(tx["blockNumber"]),
        },
    )


def verify_bitcoin_payment(
    *,
    tx_hash: str,
    amount_usd: Decimal,
    btc_price_usd: Decimal,
    expected_recipient: str,
    expected_sender: str,
    client: Optional[BlockstreamClient] = None,
) -> VerificationResult:
    client = client or BlockstreamClient()

    tx = client.get_transaction(tx_hash)
    tx_status = tx.get("status") or {}
    if not tx_status.get("confirmed"):
        raise PaymentVerificationError("Bitcoin transaction is not yet confirmed")

    confirmations = client.tip_height() - int(tx_status["block_height"]) + 1
    if confirmations < config.MIN_CONFIRMATIONS:
        raise PaymentVerificationError(
            f"Insufficient confirmations ({confirmations}/{config.MIN_CONFIRMATIONS})"
        )

    required_sats = expected_sats(amount_usd, btc_price_usd)
    paid_sats = sum(
        int(out.get("value") or 0)
        for out in tx.get("vout") or []
        if out.get("scriptpubkey_address") == expected_recipient
    )
    if paid_sats == 0:
        raise PaymentVerificationError("Transaction does not pay the TSU receiving address")
    if paid_sats < required_sats - config.BTC_AMOUNT_TOLERANCE_SATS:
        raise PaymentVerificationError("Transaction amount is less than the purchase amount")

    senders = {
        (vin.get("prevout") or {}).get("scriptpubkey_address") for vin in tx.get("vin") or []
    }
    if expected_sender not in senders:
        raise PaymentVerificationError("Transaction sender does not match your verified wallet")

    logger.info(
        f"BTC_PAYMENT_VERIFIED | tx={tx_hash} | sats={paid_sats} | required_sats={required_sats} | confirmations={confirmations}"
    )
    return VerificationResult(
        crypto_currency="BTC",
        crypto_amount=Decimal(paid_sats) / SATS_PER_BTC,
        confirmations=confirmations,
        details={
            "txHash": tx_hash,
            "paidSats": paid_sats,
            "requiredSats": required_sats,
            "btcPrice": str(btc_price_usd),
            "confirmations": confirmations,
            "blockHeight": int(tx_status["block_height"]),
        },
    )
