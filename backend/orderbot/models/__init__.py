from orderbot.models.customer import Customer
from orderbot.models.order import Order

__all__ = ["Customer", "Order"]
