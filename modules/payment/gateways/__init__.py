"""
Payment Gateway Abstraction
=============================
Each gateway implements create_session(): a hosted-payment page the customer
is redirected to. Completion arrives later through the notification webhook.
Registry pattern for gateway lookup by name.
"""

import logging
from decimal import Decimal
from typing import Dict, Optional, List
from dataclasses import dataclass

logger = logging.getLogger("storefront.gateway")


@dataclass
class GatewaySessionRequest:
    """Input for creating a hosted-payment session."""
    order_id: str
    gross_amount: Decimal
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    finish_url: str


@dataclass
class GatewayCreateResult:
    """Result of create_session()."""
    success: bool
    token: Optional[str] = None
    redirect_url: Optional[str] = None
    error_message: Optional[str] = None


class BaseGateway:
    """Abstract gateway interface."""
    name: str = ""

    def create_session(self, req: GatewaySessionRequest) -> Optional[GatewayCreateResult]:
        """Never raises for transport errors; returns success=False instead."""
        raise NotImplementedError


# ── Registry ──

_GATEWAYS: Dict[str, BaseGateway] = {}


def register_gateway(gw: BaseGateway):
    _GATEWAYS[gw.name] = gw
    logger.debug(f"Registered payment gateway: {gw.name}")


def get_gateway(name: str) -> Optional[BaseGateway]:
    gw = _GATEWAYS.get(name)
    if gw is None:
        logger.warning(f"Unknown payment gateway {name!r}; available: {get_all_gateway_names()}")
    return gw


def get_all_gateway_names() -> List[str]:
    return list(_GATEWAYS.keys())
