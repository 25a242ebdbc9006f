from __future__ import annotations

import abc
import re
from typing import List, Mapping, Optional

from .models import OrderRecord
from .utils import dump_json

ORDER_TOKEN_RE = re.compile(r"(?:TR-?|#)?(\d{5,8})", re.IGNORECASE)

PLACEHOLDER_ITEMS = ["Track Racer Rig"]
PLACEHOLDER_DELIVERY = "Within 5-7 business days"

DEMO_ORDERS = {
    "12345": OrderRecord(
        orderId="TR-12345",
        status="shipped",
        tracking="FX123456789US",
        items=["TR120", "RS6 Racing Seat", "Shifter Mount"],
        estimatedDelivery="February 5, 2026",
    ),
    "67890": OrderRecord(
        orderId="TR-67890",
        status="processing",
        items=["TR8 Pro", "Triple Monitor Stand"],
        estimatedDelivery="February 8, 2026",
    ),
}


def extract_order_token(text: str) -> Optional[str]:
    """Purpose: Pull the first order number out of free text.
    Inputs/Outputs: Input is a message; output is the 5-8 digit token or None.
    Side Effects / State: None.
    Dependencies: Uses ORDER_TOKEN_RE ("TR-", "TR" or "#" prefixes are optional).
    Failure Modes: Returns None when the message carries no 5+ digit run.
    If Removed: Order questions can never be matched to a record.
    Testing Notes: "TR-12345", "tr12345", "#12345" and "12345" all yield "12345".
    """
    # First match wins; longer digit runs are cut at eight digits.
    match = ORDER_TOKEN_RE.search(text or "")
    if not match:
        return None
    return match.group(1)


class OrderLookup(abc.ABC):
    """Order-management collaborator: order token in, record (or nothing) out."""

    @abc.abstractmethod
    def lookup(self, token: str) -> Optional[OrderRecord]:
        raise NotImplementedError


class StaticOrderLookup(OrderLookup):
    """Demo lookup backed by an in-memory order table."""

    def __init__(
        self,
        orders: Optional[Mapping[str, OrderRecord]] = None,
        placeholder_items: Optional[List[str]] = None,
        placeholder_delivery: str = PLACEHOLDER_DELIVERY,
    ) -> None:
        """Purpose: Configure the demo table and the placeholder used for unknown orders.
        Inputs/Outputs: Inputs are the order table and placeholder values; no return value.
        Side Effects / State: Stores references only.
        Dependencies: Defaults to DEMO_ORDERS and PLACEHOLDER_ITEMS.
        Failure Modes: None at init.
        If Removed: The pipeline has no order collaborator to call.
        Testing Notes: Inject a custom table and verify hits and synthesized misses.
        """
        self._orders = DEMO_ORDERS if orders is None else orders
        self._placeholder_items = list(placeholder_items or PLACEHOLDER_ITEMS)
        self._placeholder_delivery = placeholder_delivery

    def lookup(self, token: str) -> Optional[OrderRecord]:
        # Known orders come back exactly; anything else gets a processing placeholder.
        record = self._orders.get(token)
        if record is not None:
            return record.model_copy(deep=True)
        return OrderRecord(
            orderId=f"TR-{token}",
            status="processing",
            items=list(self._placeholder_items),
            estimatedDelivery=self._placeholder_delivery,
        )


def resolve_order(text: str, lookup: OrderLookup) -> Optional[OrderRecord]:
    """Extract an order token from the message and resolve it; None when no token is present."""
    token = extract_order_token(text)
    if token is None:
        return None
    return lookup.lookup(token)


def serialize_order(record: OrderRecord) -> str:
    return dump_json(record.model_dump(exclude_none=True))
