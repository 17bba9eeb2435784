"""Signed-message checks proving ownership of an ETH or BTC address."""

import logging

from bitcoin.signmessage import BitcoinMessage, VerifyMessage
from eth_account import Account
from eth_account.messages import encode_defunct

logger = logging.getLogger(__name__)


def verify_eth_signature(*, message: str, signature: str, address: str) -> bool:
    """EIP-191 personal_sign check, matching what MetaMask produces."""
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except (ValueError, TypeError) as e:
        logger.debug(f"ETH signature recovery failed: {e}")
        return False
    return recovered.lower() == address.lower()


def verify_btc_signature(*, message: str, signature: str, address: str) -> bool:
    """Legacy Bitcoin signed message (base64 compact signature) check."""
    try:
        return bool(VerifyMessage(address, BitcoinMessage(message), signature))
    except Exception as e:
        # python-bitcoinlib raises a mix of ValueError/TypeError/base64 errors on malformed input
        logger.debug(f"BTC signature verification failed: {e}")
        return False
