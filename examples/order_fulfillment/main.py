"""
Order fulfillment demo

Places one order that succeeds and one whose payment is declined, showing
the stock and charges being compensated.

Run:
    python -m examples.order_fulfillment.main
"""

from commandant import CommanderConfig, configure
from commandant.monitoring import setup_commander_logging

from .commanders import PlaceOrder
from .services import Inventory, Mailer, Order, PaymentGateway


def main() -> None:
    setup_commander_logging(log_level="INFO", json_format=False)
    configure(CommanderConfig(strict=False))

    inventory = Inventory({"SKU-1": 5})
    gateway = PaymentGateway(limit=500)
    mailer = Mailer()

    accepted = Order("ORD-1", "SKU-1", 2, 120.0, "alice@example.com")
    PlaceOrder.run_or_raise(order=accepted, inventory=inventory, gateway=gateway, mailer=mailer)
    print(f"{accepted.order_id}: {accepted.status}, stock left {inventory.available('SKU-1')}")

    declined = Order("ORD-2", "SKU-1", 1, 9_000.0, "bob@example.com")
    result = PlaceOrder.run(order=declined, inventory=inventory, gateway=gateway, mailer=mailer)
    print(f"{declined.order_id}: {result.message}, status {declined.status}, stock left {inventory.available('SKU-1')}")
    print(f"Emails sent: {mailer.sent}")


if __name__ == "__main__":
    main()
