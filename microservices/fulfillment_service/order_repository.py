"""
Order Repository

Data access layer for orders using the asyncpg-backed PostgresClientWrapper.
Matches schema: fulfillment.orders
"""

import logging
import secrets
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import asyncpg

from core.postgres_client import PostgresClientWrapper
from .models import Order, OrderCreateRequest, OrderItem, OrderStatus, PaymentStatus, ShippingAddress
from .protocols import DuplicateOrderNumberError

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD-YYYYMMDD-NNNN with a random 4-digit suffix"""
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{secrets.randbelow(10000):04d}"


class OrderRepository:
    """
    Repository for order data operations

    Tables:
        - fulfillment.orders: order records, items and address as JSONB
    """

    def __init__(self, db: Optional[PostgresClientWrapper] = None):
        """Initialize Order Repository with PostgresClientWrapper"""
        self.db = db or PostgresClientWrapper("fulfillment_service")
        self.schema = "fulfillment"
        self.orders_table = "orders"

        logger.info("OrderRepository initialized with PostgresClient")

    async def create_order(
        self,
        customer_id: str,
        customer_role: str,
        request: OrderCreateRequest,
        items: List[OrderItem],
        subtotal: Decimal,
        total: Decimal,
    ) -> Order:
        """Create a new order, retrying on order-number collisions"""
        query = f'''
            INSERT INTO "{self.schema}".{self.orders_table} (
                order_id, order_number, customer_id, customer_role, supplier_id,
                items, subtotal, shipping_cost, commission, total, marketer_profit,
                status, payment_method, payment_status, shipping_address,
                shipping_company, delivery_notes, created_at, updated_at
            ) VALUES (
                $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11,
                $12, $13, $14, $15, $16, $17, $18, $18
            )
            RETURNING *
        '''

        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            order_id = str(uuid.uuid4())
            now = datetime.now(timezone.utc)
            order_number = generate_order_number(now)
            params = [
                order_id,
                order_number,
                customer_id,
                customer_role,
                request.supplier_id,
                [item.model_dump(mode="json") for item in items],
                subtotal,
                request.shipping_cost,
                request.commission,
                total,
                request.marketer_profit,
                OrderStatus.PENDING.value,
                "cod",
                PaymentStatus.PENDING.value,
                request.shipping_address.model_dump(mode="json"),
                request.shipping_company,
                request.delivery_notes,
                now,
            ]

            try:
                async with self.db:
                    row = await self.db.query_row(query, params)
                return self._row_to_order(row)
            except asyncpg.exceptions.UniqueViolationError as e:
                logger.warning(f"Order number {order_number} collided (attempt {attempt}): {e}")
            except Exception as e:
                logger.error(f"Failed to create order for {customer_id}: {e}")
                raise

        raise DuplicateOrderNumberError(
            f"Could not allocate a unique order number after {ORDER_NUMBER_ATTEMPTS} attempts"
        )

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get order by ID"""
        try:
            query = f'SELECT * FROM "{self.schema}".{self.orders_table} WHERE order_id = $1'

            async with self.db:
                result = await self.db.query_row(query, [order_id])

            return self._row_to_order(result) if result else None

        except Exception as e:
            logger.error(f"Failed to get order {order_id}: {e}")
            raise

    async def update_shipping(
        self,
        order_id: str,
        shipping_company: str,
        shipping_address: ShippingAddress,
    ) -> Optional[Order]:
        """Set carrier name and address; only while the order has no package"""
        try:
            query = f'''
                UPDATE "{self.schema}".{self.orders_table}
                SET shipping_company = $1, shipping_address = $2, updated_at = $3
                WHERE order_id = $4 AND package_id IS NULL
                RETURNING *
            '''
            params = [
                shipping_company,
                shipping_address.model_dump(mode="json"),
                datetime.now(timezone.utc),
                order_id,
            ]

            async with self.db:
                result = await self.db.query_row(query, params)

            return self._row_to_order(result) if result else None

        except Exception as e:
            logger.error(f"Failed to update shipping for order {order_id}: {e}")
            raise

    async def set_package_id(self, order_id: str, package_id: int) -> bool:
        """Link the order to its package"""
        try:
            query = f'''
                UPDATE "{self.schema}".{self.orders_table}
                SET package_id = $1, updated_at = $2
                WHERE order_id = $3
            '''

            async with self.db:
                count = await self.db.execute(query, [package_id, datetime.now(timezone.utc), order_id])

            return count > 0

        except Exception as e:
            logger.error(f"Failed to set package {package_id} on order {order_id}: {e}")
            raise

    def _row_to_order(self, row: Dict[str, Any]) -> Order:
        data = dict(row)
        data["items"] = data.get("items") or []
        data["shipping_address"] = data.get("shipping_address") or {}
        return Order.model_validate(data)
