"""
Order Fulfillment Example

Order placement as a saga of commanders:
- Stock reservation (compensated by releasing the stock)
- Payment capture (compensated by a refund)
- Order status update (compensated by restoring the previous status)
- Confirmation email, sent only once everything succeeded
"""

from .commanders import CapturePayment, PlaceOrder, ReserveStock
from .services import Inventory, Mailer, Order, PaymentGateway

__all__ = [
    "CapturePayment",
    "Inventory",
    "Mailer",
    "Order",
    "PaymentGateway",
    "PlaceOrder",
    "ReserveStock",
]
