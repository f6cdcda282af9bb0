"""
                        Services Module

Business services and their pluggable backends.

Services:
    - orders: order lifecycle (create, list, confirm)
    - menu: menu catalog reader
    - store: document store backends (memory, SQL)
    - identity: bearer-token verifiers (mock, Firebase)
"""

from order_api.services.menu import MenuService
from order_api.services.orders import OrderService

__all__ = ["MenuService", "OrderService"]
