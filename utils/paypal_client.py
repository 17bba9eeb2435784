"""Thin PayPal REST client (OAuth2 client credentials + Orders v2)."""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Set

import httpx

import config

logger = logging.getLogger(__name__)

SANDBOX_BASE_URL = "https://api-m.sandbox.paypal.com"
LIVE_BASE_URL = "https://api-m.paypal.com"


class PayPalError(Exception):
    def __init__(self, message: str, status_code: int = 502, details: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class PayPalNotConfigured(PayPalError):
    def __init__(self):
        super().__init__("PayPal payment processing is not configured", status_code=503)


def is_configured() -> bool:
    return bool(config.PAYPAL_CLIENT_ID and config.PAYPAL_CLIENT_SECRET)


def _base_url() -> str:
    return LIVE_BASE_URL if config.PAYPAL_MODE == "live" else SANDBOX_BASE_URL


def _raise_for_response(response: httpx.Response, action: str) -> None:
    if response.status_code < 400:
        return
    try:
        details = response.json()
    except ValueError:
        details = response.text
    logger.error(f"PAYPAL_ERROR | action={action} | status={response.status_code} | body={details}")
    status_code = response.status_code if response.status_code in (400, 404, 422) else 502
    raise PayPalError(f"PayPal {action} failed", status_code=status_code, details=details)


def get_access_token() -> str:
    if not is_configured():
        raise PayPalNotConfigured()
    try:
        with httpx.Client(timeout=config.PAYPAL_HTTP_TIMEOUT_SECONDS) as client:
            response = client.post(
                f"{_base_url()}/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(config.PAYPAL_CLIENT_ID, config.PAYPAL_CLIENT_SECRET),
                headers={"Accept": "application/json"},
            )
    except httpx.HTTPError as e:
        logger.error(f"PayPal token request failed: {e}")
        raise PayPalError("PayPal is unreachable") from e
    _raise_for_response(response, "oauth")
    return response.json()["access_token"]


def _request(method: str, path: str, *, action: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    token = get_access_token()
    headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
    try:
        with httpx.Client(timeout=config.PAYPAL_HTTP_TIMEOUT_SECONDS) as client:
            response = client.request(method, f"{_base_url()}{path}", json=json, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"PayPal {action} request failed: {e}")
        raise PayPalError("PayPal is unreachable") from e
    _raise_for_response(response, action)
    return response.json() if response.content else {}


def generate_client_token() -> str:
    body = _request("POST", "/v1/identity/generate-token", action="client_token")
    return body["client_token"]


def create_order(*, amount: Decimal, currency: str, intent: str) -> Dict[str, Any]:
    payload = {
        "intent": intent.upper(),
        "purchase_units": [
            {"amount": {"currency_code": currency.upper(), "value": f"{amount:.2f}"}}
        ],
    }
    order = _request("POST", "/v2/checkout/orders", action="create_order", json=payload)
    logger.info(f"PAYPAL_ORDER_CREATED | order_id={order.get('id')} | amount={amount} | currency={currency}")
    return order


def capture_order(order_id: str) -> Dict[str, Any]:
    body = _request("POST", f"/v2/checkout/orders/{order_id}/capture", action="capture_order", json={})
    logger.info(f"PAYPAL_ORDER_CAPTURED | order_id={order_id} | status={body.get('status')}")
    return body


def get_order(order_id: str) -> Dict[str, Any]:
    return _request("GET", f"/v2/checkout/orders/{order_id}", action="get_order")


def _completed_captures(order: Dict[str, Any]):
    for unit in order.get("purchase_units") or []:
        for capture in (unit.get("payments") or {}).get("captures") or []:
            if capture.get("status") == "COMPLETED":
                yield capture


def capture_currencies(order: Dict[str, Any]) -> Set[str]:
    return {((c.get("amount") or {}).get("currency_code") or "").upper() for c in _completed_captures(order)}


def captured_amount(order: Dict[str, Any], currency: str = "USD") -> Optional[Decimal]:
    """
    Sum of completed captures in `currency`, or None when nothing was captured
    in that currency.
    """
    total = Decimal("0")
    found = False
    for capture in _completed_captures(order):
        amount = capture.get("amount") or {}
        if (amount.get("currency_code") or "").upper() != currency.upper():
            continue
        total += Decimal(str(amount["value"]))
        found = True
    return total if found else None
