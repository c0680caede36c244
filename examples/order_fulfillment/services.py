"""
In-memory stand-ins for the services an order touches.
"""

import itertools
from dataclasses import dataclass, field


@dataclass
class Order:
    order_id: str
    sku: str
    quantity: int
    amount: float
    email: str
    status: str = "pending"


class Inventory:
    def __init__(self, stock: dict[str, int] | None = None):
        self.stock = dict(stock or {})

    def available(self, sku: str) -> int:
        return self.stock.get(sku, 0)

    def reserve(self, sku: str, quantity: int) -> int:
        self.stock[sku] = self.available(sku) - quantity
        return quantity

    def release(self, sku: str, quantity: int) -> None:
        self.stock[sku] = self.available(sku) + quantity


class PaymentGateway:
    _ids = itertools.count(1)

    def __init__(self, limit: float = 10_000.0):
        self.limit = limit
        self.charges: dict[str, float] = {}
        self.refunds: list[str] = []

    def charge(self, amount: float) -> str:
        charge_id = f"ch_{next(self._ids)}"
        self.charges[charge_id] = amount
        return charge_id

    def refund(self, charge_id: str) -> None:
        self.charges.pop(charge_id)
        self.refunds.append(charge_id)


@dataclass
class Mailer:
    sent: list[tuple[str, str]] = field(default_factory=list)

    def send(self, to: str, subject: str) -> None:
        self.sent.append((to, subject))
