"""
Midtrans Gateway
=================
Snap REST/JSON. Basic auth with the server key as username and an empty
password. Sandbox unless MIDTRANS_IS_PRODUCTION is set.
"""

import httpx
import logging

from config.settings import MIDTRANS_SERVER_KEY, MIDTRANS_IS_PRODUCTION, GATEWAY_TIMEOUT_SECONDS
from modules.payment.gateways import (
    BaseGateway, GatewaySessionRequest, GatewayCreateResult, register_gateway,
)

logger = logging.getLogger("storefront.gateway.midtrans")

MIDTRANS_SANDBOX_URL = "https://app.sandbox.midtrans.com/snap/v1/transactions"
MIDTRANS_PRODUCTION_URL = "https://app.midtrans.com/snap/v1/transactions"

ENABLED_PAYMENTS = ["bank_transfer", "gopay", "shopeepay", "credit_card"]


def build_snap_payload(req: GatewaySessionRequest) -> dict:
    return {
        "transaction_details": {
            "order_id": req.order_id,
            "gross_amount": int(req.gross_amount),
        },
        "customer_details": {
            "first_name": req.customer_name,
            "email": req.customer_email,
            "phone": req.customer_phone,
            "shipping_address": {
                "address": req.shipping_address,
            },
        },
        "enabled_payments": list(ENABLED_PAYMENTS),
        "callbacks": {
            "finish": req.finish_url,
        },
    }


class MidtransGateway(BaseGateway):
    name = "midtrans"

    def __init__(self, server_key: str = MIDTRANS_SERVER_KEY,
                 is_production: bool = MIDTRANS_IS_PRODUCTION,
                 timeout: float = GATEWAY_TIMEOUT_SECONDS):
        self.server_key = server_key
        self.url = MIDTRANS_PRODUCTION_URL if is_production else MIDTRANS_SANDBOX_URL
        self.timeout = timeout

    def create_session(self, req: GatewaySessionRequest) -> GatewayCreateResult:
        try:
            resp = httpx.post(
                self.url,
                json=build_snap_payload(req),
                auth=(self.server_key, ""),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            data = resp.json()
            if not isinstance(data, dict):
                data = {}
            logger.info(f"Midtrans create [{req.order_id}]: HTTP {resp.status_code}")

            if resp.status_code in (200, 201):
                return GatewayCreateResult(
                    success=True,
                    token=data.get("token"),
                    redirect_url=data.get("redirect_url"),
                )
            else:
                messages = data.get("error_messages") or [f"HTTP {resp.status_code}"]
                if isinstance(messages, str):
                    messages = [messages]
                return GatewayCreateResult(success=False, error_message="; ".join(messages))

        except httpx.TimeoutException:
            logger.error(f"Midtrans create [{req.order_id}]: timeout after {self.timeout}s")
            return GatewayCreateResult(success=False, error_message="gateway timeout")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Midtrans create failed: {e}")
            return GatewayCreateResult(success=False, error_message=f"gateway connection error: {e}")


register_gateway(MidtransGateway())
