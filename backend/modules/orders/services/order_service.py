# backend/modules/orders/services/order_service.py

"""
Order placement from the QR menu and order handling in the panel.

Placing an order is one transaction: the order and its lines, the coupon
claim, stock deductions and the subscription usage counter are committed
together or not at all.
"""

import logging
import random
import string
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload, selectinload

from core.exceptions import APIError, NotFoundError, ValidationError
from core.response_utils import PaginationParams
from modules.customers.services.customer_service import CustomerService
from modules.loyalty.services.loyalty_service import LoyaltyService
from modules.menu.models.menu_models import Category, MenuItem
from modules.menu.services.stock_service import StockService
from modules.promotions.services.coupon_service import CouponService
from modules.promotions.services.discount_evaluator import normalize_code
from modules.tables.services.table_service import TableService
from modules.tenants.models.tenant_models import Subscription

from ..models.order_models import Order, OrderItem, OrderStatus
from ..schemas.order_schemas import OrderUpdate, PublicOrderCreate

logger = logging.getLogger(__name__)

MSG_ORDER_NOT_FOUND = "Sipariş bulunamadı"
MSG_ORDER_CREATED = "Siparişiniz başarıyla oluşturuldu"

# Orders only move forward; anything still open can be cancelled
VALID_TRANSITIONS = {
    OrderStatus.PENDING: [
        OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY,
        OrderStatus.DELIVERED, OrderStatus.CANCELLED
    ],
    OrderStatus.CONFIRMED: [
        OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.DELIVERED,
        OrderStatus.CANCELLED
    ],
    OrderStatus.PREPARING: [OrderStatus.READY, OrderStatus.DELIVERED, OrderStatus.CANCELLED],
    OrderStatus.READY: [OrderStatus.DELIVERED, OrderStatus.CANCELLED],
    OrderStatus.DELIVERED: [],
    OrderStatus.CANCELLED: [],
}

_BASE36 = string.digits + string.ascii_uppercase
_NUMBER_ATTEMPTS = 5


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_order_number(now: Optional[datetime] = None) -> str:
    """"S" + last 4 base36 digits of the epoch milliseconds + 2 random characters"""
    now = now or datetime.utcnow()
    millis = int((now - datetime(1970, 1, 1)).total_seconds() * 1000)
    suffix = "".join(random.choices(_BASE36, k=2))
    return f"S{_to_base36(millis)[-4:]}{suffix}"


class OrderService:
    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _query(self):
        return self.db.query(Order).filter(Order.tenant_id == self.tenant_id)

    def _unique_order_number(self) -> str:
        for _ in range(_NUMBER_ATTEMPTS):
            number = generate_order_number()
            if self._query().filter(Order.order_number == number).first() is None:
                return number
        raise APIError(
            status_code=503,
            detail="Sipariş numarası oluşturulamadı, lütfen tekrar deneyin",
            error_code="ORDER_NUMBER_EXHAUSTED",
        )

    def _priced_items(self, data: PublicOrderCreate) -> List[Tuple[MenuItem, int, Optional[str]]]:
        ids = {line.menu_item_id for line in data.items}
        menu_items = {
            item.id: item
            for item in (
                self.db.query(MenuItem)
                .join(Category, MenuItem.category_id == Category.id)
                .filter(
                    MenuItem.tenant_id == self.tenant_id,
                    MenuItem.id.in_(ids),
                    Category.is_active.is_(True),
                )
                .all()
            )
        }

        lines = []
        for line in data.items:
            item = menu_items.get(line.menu_item_id)
            if item is None:
                raise ValidationError("Ürün bulunamadı", error_code="ITEM_NOT_FOUND")
            if not item.is_available:
                raise ValidationError(
                    f"{item.name} şu anda sipariş edilemiyor", error_code="ITEM_UNAVAILABLE"
                )
            lines.append((item, line.quantity, line.notes))

        # Stock check on combined quantities when an item appears on several lines
        requested = {}
        for item, quantity, _ in lines:
            requested[item.id] = requested.get(item.id, 0) + quantity
        for item_id, quantity in requested.items():
            item = menu_items[item_id]
            if item.track_stock and item.stock_quantity < quantity:
                raise ValidationError(
                    f"{item.name} için yeterli stok yok", error_code="INSUFFICIENT_STOCK"
                )
        return lines

    def place_order(self, data: PublicOrderCreate) -> Order:
        """
        Create an order from the customer menu.

        Raises:
            ValidationError: for unknown or unavailable items, insufficient
                stock, or a coupon that is rejected or loses the usage race
        """
        try:
            order = self._place_order(data)
            self.db.commit()
        except APIError:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info(
            f"Order {order.order_number} placed for tenant {self.tenant_id}: "
            f"{len(order.items)} lines, total {order.total}"
        )
        return order

    def _place_order(self, data: PublicOrderCreate) -> Order:
        lines = self._priced_items(data)

        table = None
        if data.table_number:
            table = TableService(self.db, self.tenant_id).get_active_by_number(data.table_number)
            if table is None:
                logger.warning(
                    f"Order for unknown table {data.table_number} of tenant {self.tenant_id}"
                )

        customer = None
        if data.customer_phone:
            customer = CustomerService(self.db, self.tenant_id).get_or_create_by_phone(
                data.customer_phone, data.customer_name
            )

        subtotal = sum((item.price * quantity for item, quantity, _ in lines), Decimal("0"))

        order = Order(
            tenant_id=self.tenant_id,
            order_number=self._unique_order_number(),
            table_id=table.id if table else None,
            customer_id=customer.id if customer else None,
            status=OrderStatus.PENDING,
            subtotal=subtotal,
            discount=Decimal("0"),
            total=subtotal,
            notes=data.notes,
        )
        for item, quantity, notes in lines:
            order.items.append(
                OrderItem(
                    menu_item_id=item.id,
                    name=item.name,
                    quantity=quantity,
                    unit_price=item.price,
                    total_price=item.price * quantity,
                    notes=notes,
                )
            )
        self.db.add(order)
        self.db.flush()

        if data.coupon_code:
            coupons = CouponService(self.db, self.tenant_id)
            coupon, result = coupons.validate(
                data.coupon_code,
                order_total=subtotal,
                customer_id=customer.id if customer else None,
            )
            if not result.valid:
                raise ValidationError(result.message, error_code="COUPON_INVALID")
            coupons.redeem(
                coupon,
                order_id=order.id,
                discount_amount=result.discount_amount,
                customer_id=customer.id if customer else None,
            )
            order.coupon_code = normalize_code(data.coupon_code)
            order.discount = result.discount_amount
            order.total = subtotal - result.discount_amount

        stock = StockService(self.db, self.tenant_id)
        for item, quantity, _ in lines:
            stock.deduct_for_order(item, quantity, order.id, order.order_number)

        self.db.query(Subscription).filter(Subscription.tenant_id == self.tenant_id).update(
            {Subscription.orders_used: Subscription.orders_used + 1},
            synchronize_session=False,
        )
        return order

    def list_orders(
        self,
        pagination: PaginationParams,
        status: Optional[OrderStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Tuple[List[Order], int]:
        query = self._query()
        if status is not None:
            query = query.filter(Order.status == status)
        if date_from is not None:
            query = query.filter(Order.created_at >= date_from)
        if date_to is not None:
            query = query.filter(Order.created_at <= date_to)
        query = query.options(
            joinedload(Order.table), joinedload(Order.customer), selectinload(Order.items)
        ).order_by(Order.created_at.desc(), Order.id.desc())
        return pagination.paginate_query(query)

    def get_order(self, order_id: int) -> Order:
        order = self._query().filter(Order.id == order_id).first()
        if order is None:
            raise NotFoundError(MSG_ORDER_NOT_FOUND)
        return order

    def update_order(self, order_id: int, data: OrderUpdate) -> Tuple[Order, OrderStatus]:
        """
        Apply a status, payment or notes change from the panel.

        Delivering an order credits it to the customer's loyalty account.
        Returns the order and its status before the change.
        """
        order = self.get_order(order_id)
        previous_status = OrderStatus(order.status)
        values = data.model_dump(exclude_unset=True)

        new_status = values.get("status")
        if new_status is not None and new_status != previous_status:
            if new_status not in VALID_TRANSITIONS.get(previous_status, []):
                raise ValidationError(
                    f"{previous_status.value} durumundan {new_status.value} durumuna geçilemez",
                    error_code="INVALID_STATUS_TRANSITION",
                )
            order.status = new_status
            if new_status == OrderStatus.DELIVERED:
                order.completed_at = datetime.utcnow()
                if order.customer is not None:
                    LoyaltyService(self.db, self.tenant_id).accrue_for_order(order.customer, order)

        if values.get("payment_status") is not None:
            order.payment_status = values["payment_status"]
        if "notes" in values:
            order.notes = values["notes"]

        self.db.commit()
        self.db.refresh(order)
        if order.status != previous_status:
            logger.info(
                f"Order {order.order_number} of tenant {self.tenant_id}: "
                f"{previous_status.value} -> {order.status.value}"
            )
        return order, previous_status


def track_order(
    db: Session,
    tenant_id: int,
    order_id: Optional[int] = None,
    order_number: Optional[str] = None,
) -> Order:
    """Public status lookup by id or number, always within one restaurant"""
    if order_id is None and not order_number:
        raise ValidationError("Sipariş ID veya numarası gerekli")
    query = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.tenant_id == tenant_id)
    )
    if order_id is not None:
        query = query.filter(Order.id == order_id)
    else:
        query = query.filter(Order.order_number == order_number.strip().upper())
    order = query.first()
    if order is None:
        raise NotFoundError(MSG_ORDER_NOT_FOUND)
    return order
