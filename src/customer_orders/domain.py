"""CustomerOrders bounded context: customer-facing orders.

Tracks an order from placement through confirmation, manufacturing progress,
shipping and delivery, and follows the manufacturing order built for it
through the Manufacturing context's events.
"""

from protean.domain import Domain

customer_orders = Domain(name="customer_orders")
