from fastapi import APIRouter

from .schemas import PayPalOrderRequest, PayPalSetupResponse
from .service import (
    paypal_capture_order as service_capture_order,
    paypal_create_order as service_create_order,
    paypal_setup as service_setup,
)

router = APIRouter(tags=["PayPal"])


@router.get("/api/paypal/setup", response_model=PayPalSetupResponse)
def paypal_setup():
    return service_setup()


@router.post("/api/paypal/order")
def create_order(payload: PayPalOrderRequest):
    return service_create_order(amount=payload.amount, currency=payload.currency, intent=payload.intent)


@router.post("/api/paypal/order/{order_id}/capture")
def capture_order(order_id: str):
    return service_capture_order(order_id=order_id)


# Paths used by the PayPal button integration before the /api prefix existed.
router.add_api_route("/setup", paypal_setup, methods=["GET"], response_model=PayPalSetupResponse, include_in_schema=False)
router.add_api_route("/order", create_order, methods=["POST"], include_in_schema=False)
router.add_api_route("/order/{order_id}/capture", capture_order, methods=["POST"], include_in_schema=False)
