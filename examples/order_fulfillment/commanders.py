"""
Commanders placing an order.
"""

import logging

from commandant import Commander, Supervisor

from .services import Inventory, Mailer, Order, PaymentGateway

logger = logging.getLogger(__name__)


class ReserveStock(Commander):
    """Take stock for an order line."""

    argument_types = {"inventory": Inventory, "sku": str, "quantity": int}
    errors = {
        "invalid_quantity": "Quantity must be positive",
        "out_of_stock": "Not enough stock for this item",
    }

    def check_conditions(self, inventory, sku, quantity, **options):
        self.condition("invalid_quantity", quantity > 0)
        self.condition("out_of_stock", lambda: inventory.available(sku) >= quantity)

    def up(self, inventory, sku, quantity, **options):
        logger.info(f"Reserving {quantity} x {sku}")
        return inventory.reserve(sku, quantity)

    def down(self):
        logger.warning(f"Releasing {self.options['quantity']} x {self.options['sku']}")
        self.options["inventory"].release(self.options["sku"], self.options["quantity"])


class CapturePayment(Commander):
    """Charge the customer; refuses amounts above the gateway limit."""

    argument_types = {"gateway": PaymentGateway, "amount": (int, float)}
    errors = {"payment_declined": "Payment was declined"}

    def up(self, gateway, amount, **options):
        if amount > gateway.limit:
            self.fail("payment_declined", amount=amount, limit=gateway.limit)
        self.charge_id = gateway.charge(amount)
        return self.charge_id

    def down(self):
        self.options["gateway"].refund(self.charge_id)


def _send_confirmation(supervisor: "PlaceOrder", order: Order) -> None:
    supervisor.options["mailer"].send(order.email, f"Order {order.order_id} confirmed")


class PlaceOrder(Supervisor):
    """Reserve, charge, then mark the order placed."""

    argument_types = {
        "order": Order,
        "inventory": Inventory,
        "gateway": PaymentGateway,
        "mailer": Mailer,
    }
    errors = {"already_placed": "This order has already been placed"}

    def check_conditions(self, order, **options):
        self.condition("already_placed", order.status == "pending")

    def orchestrate(self, order, inventory, gateway, mailer, **options):
        self.commander_step(ReserveStock, inventory=inventory, sku=order.sku, quantity=order.quantity)
        payment = self.commander_step(CapturePayment, gateway=gateway, amount=order.amount)
        self.update_step(order, {"status": "placed"})
        self.step(lambda supervisor: order, notify=_send_confirmation)
        return payment.return_value
