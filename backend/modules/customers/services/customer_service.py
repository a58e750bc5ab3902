# backend/modules/customers/services/customer_service.py

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError
from core.response_utils import PaginationParams
from modules.orders.models.order_models import Order

from ..models.customer_models import Customer
from ..schemas.customer_schemas import CustomerCreate, CustomerSort, CustomerUpdate

logger = logging.getLogger(__name__)

MSG_CUSTOMER_NOT_FOUND = "Müşteri bulunamadı"

_SORT_COLUMNS = {
    CustomerSort.LAST_VISIT: Customer.last_visit_at,
    CustomerSort.TOTAL_SPENT: Customer.total_spent,
    CustomerSort.LOYALTY_POINTS: Customer.loyalty_points,
    CustomerSort.VISIT_COUNT: Customer.visit_count,
}


class CustomerService:
    """Service for managing a restaurant's customers"""

    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _query(self):
        return self.db.query(Customer).filter(Customer.tenant_id == self.tenant_id)

    def get_customer(self, customer_id: int) -> Customer:
        customer = self._query().filter(Customer.id == customer_id).first()
        if customer is None:
            raise NotFoundError(MSG_CUSTOMER_NOT_FOUND)
        return customer

    def find_customer(
        self, customer_id: Optional[int] = None, phone: Optional[str] = None
    ) -> Customer:
        """Look a customer up by phone and/or id; when both are given they must match"""
        if customer_id is None and not phone:
            raise NotFoundError(MSG_CUSTOMER_NOT_FOUND)
        query = self._query()
        if customer_id is not None:
            query = query.filter(Customer.id == customer_id)
        if phone:
            query = query.filter(Customer.phone == "".join(phone.split()))
        customer = query.first()
        if customer is None:
            raise NotFoundError(MSG_CUSTOMER_NOT_FOUND)
        return customer

    def list_customers(
        self,
        pagination: PaginationParams,
        search: Optional[str] = None,
        sort: CustomerSort = CustomerSort.LAST_VISIT,
    ) -> Tuple[List[Dict], int]:
        """Customers with their five latest orders"""
        query = self._query()
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(term),
                    Customer.phone.like(term),
                    Customer.email.ilike(term),
                )
            )

        column = _SORT_COLUMNS[sort]
        query = query.order_by(column.desc(), Customer.id.desc())
        customers, total = pagination.paginate_query(query)

        recent = defaultdict(list)
        if customers:
            orders = (
                self.db.query(Order)
                .filter(Order.customer_id.in_([c.id for c in customers]))
                .order_by(Order.created_at.desc(), Order.id.desc())
                .all()
            )
            for order in orders:
                if len(recent[order.customer_id]) < 5:
                    recent[order.customer_id].append(
                        {
                            "id": order.id,
                            "order_number": order.order_number,
                            "total": order.total,
                            "date": order.created_at,
                        }
                    )

        items = []
        for customer in customers:
            items.append(
                {
                    "id": customer.id,
                    "name": customer.name,
                    "phone": customer.phone,
                    "email": customer.email,
                    "birth_date": customer.birth_date,
                    "notes": customer.notes,
                    "loyalty_points": customer.loyalty_points,
                    "loyalty_tier": customer.loyalty_tier,
                    "total_spent": customer.total_spent,
                    "visit_count": customer.visit_count,
                    "last_visit_at": customer.last_visit_at,
                    "created_at": customer.created_at,
                    "recent_orders": recent[customer.id],
                }
            )
        return items, total

    def stats(self) -> Dict[str, int]:
        count, total_points, avg_points = (
            self.db.query(
                func.count(Customer.id),
                func.coalesce(func.sum(Customer.loyalty_points), 0),
                func.avg(Customer.loyalty_points),
            )
            .filter(Customer.tenant_id == self.tenant_id)
            .one()
        )
        start_of_month = datetime.utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        new_this_month = self._query().filter(Customer.created_at >= start_of_month).count()
        return {
            "total_customers": count,
            "new_this_month": new_this_month,
            "avg_loyalty_points": int(round(float(avg_points or 0))),
            "total_loyalty_points": int(total_points or 0),
        }

    def _ensure_unique(
        self, phone: Optional[str], email: Optional[str], exclude_id: Optional[int] = None
    ) -> None:
        if phone:
            query = self._query().filter(Customer.phone == phone)
            if exclude_id is not None:
                query = query.filter(Customer.id != exclude_id)
            if query.first():
                raise ConflictError("Bu telefon numarası zaten kayıtlı", error_code="PHONE_EXISTS")
        if email:
            query = self._query().filter(func.lower(Customer.email) == email.lower())
            if exclude_id is not None:
                query = query.filter(Customer.id != exclude_id)
            if query.first():
                raise ConflictError("Bu e-posta adresi zaten kayıtlı", error_code="EMAIL_EXISTS")

    def create_customer(self, data: CustomerCreate) -> Customer:
        self._ensure_unique(data.phone, data.email)
        customer = Customer(tenant_id=self.tenant_id, **data.model_dump())
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        logger.info(f"Created customer {customer.id} for tenant {self.tenant_id}")
        return customer

    def update_customer(self, customer_id: int, data: CustomerUpdate) -> Customer:
        customer = self.get_customer(customer_id)
        values = data.model_dump(exclude_unset=True)
        self._ensure_unique(values.get("phone"), values.get("email"), exclude_id=customer.id)
        for field, value in values.items():
            setattr(customer, field, value)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def get_or_create_by_phone(self, phone: str, name: Optional[str] = None) -> Customer:
        """
        Attach an order to the customer with this phone, creating one if new.

        Does not commit; the order transaction owns the write.
        """
        phone = "".join(phone.split())
        customer = self._query().filter(Customer.phone == phone).first()
        if customer is None:
            customer = Customer(tenant_id=self.tenant_id, phone=phone, name=name or "Misafir")
            self.db.add(customer)
            self.db.flush()
            logger.info(f"Created customer {customer.id} from order for tenant {self.tenant_id}")
        elif name:
            customer.name = name
        return customer
