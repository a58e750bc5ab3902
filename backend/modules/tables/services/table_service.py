# backend/modules/tables/services/table_service.py

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError
from modules.orders.models.order_models import ACTIVE_STATUSES, Order
from modules.tenants.models.tenant_models import Tenant
from modules.tenants.services.tenant_resolver import TenantResolver

from ..models.table_models import Table
from ..schemas.table_schemas import TableBulkCreate, TableCreate, TableUpdate

logger = logging.getLogger(__name__)

MSG_TABLE_NOT_FOUND = "Masa bulunamadı"
MSG_NUMBER_TAKEN = "Bu masa numarası zaten kullanılıyor"


class TableService:
    """Tables of one restaurant and their QR menu links"""

    def __init__(self, db: Session, tenant_id: int, resolver: Optional[TenantResolver] = None):
        self.db = db
        self.tenant_id = tenant_id
        self.resolver = resolver
        self._slug = None

    @property
    def tenant_slug(self) -> str:
        if self._slug is None:
            self._slug = self.db.query(Tenant.slug).filter(Tenant.id == self.tenant_id).scalar()
        return self._slug

    def qr_url(self, number: str) -> str:
        return self.resolver.table_qr_url(self.tenant_slug, number)

    def _query(self):
        return self.db.query(Table).filter(Table.tenant_id == self.tenant_id)

    def _number_taken(self, number: str, exclude_id: int = None) -> bool:
        query = self._query().filter(Table.number == number)
        if exclude_id is not None:
            query = query.filter(Table.id != exclude_id)
        return query.first() is not None

    def list_tables(self) -> List[Tuple[Table, int]]:
        """Tables ordered by area and number, with their open order counts"""
        active: Dict[int, int] = dict(
            self.db.query(Order.table_id, func.count(Order.id))
            .filter(
                Order.tenant_id == self.tenant_id,
                Order.table_id.isnot(None),
                Order.status.in_(ACTIVE_STATUSES),
            )
            .group_by(Order.table_id)
            .all()
        )
        tables = self._query().order_by(Table.area, Table.number).all()
        return [(table, active.get(table.id, 0)) for table in tables]

    def get_table(self, table_id: int) -> Table:
        table = self._query().filter(Table.id == table_id).first()
        if table is None:
            raise NotFoundError(MSG_TABLE_NOT_FOUND)
        return table

    def get_active_by_number(self, number: str):
        return (
            self._query()
            .filter(Table.number == str(number).strip(), Table.is_active.is_(True))
            .first()
        )

    def create_table(self, data: TableCreate) -> Table:
        if self._number_taken(data.number):
            raise ConflictError(MSG_NUMBER_TAKEN, error_code="TABLE_NUMBER_EXISTS")
        table = Table(tenant_id=self.tenant_id, qr_code=self.qr_url(data.number), **data.model_dump())
        self.db.add(table)
        self.db.commit()
        self.db.refresh(table)
        return table

    def bulk_create(self, data: TableBulkCreate) -> Tuple[List[Table], List[str]]:
        """Create consecutive table numbers, skipping ones already in use"""
        numbers = [str(n) for n in range(data.start_number, data.start_number + data.count)]
        existing = {
            number
            for (number,) in self.db.query(Table.number).filter(
                Table.tenant_id == self.tenant_id, Table.number.in_(numbers)
            )
        }

        created = []
        for number in numbers:
            if number in existing:
                continue
            table = Table(
                tenant_id=self.tenant_id,
                number=number,
                area=data.area,
                capacity=data.capacity,
                qr_code=self.qr_url(number),
            )
            self.db.add(table)
            created.append(table)

        self.db.commit()
        for table in created:
            self.db.refresh(table)
        skipped = [number for number in numbers if number in existing]
        logger.info(
            f"Bulk created {len(created)} tables for tenant {self.tenant_id}, skipped {len(skipped)}"
        )
        return created, skipped

    def update_table(self, table_id: int, data: TableUpdate) -> Table:
        table = self.get_table(table_id)
        values = data.model_dump(exclude_unset=True)
        number = values.get("number")
        if number is not None:
            number = number.strip()
            if self._number_taken(number, exclude_id=table.id):
                raise ConflictError(MSG_NUMBER_TAKEN, error_code="TABLE_NUMBER_EXISTS")
            values["number"] = number
            values["qr_code"] = self.qr_url(number)
        for key, value in values.items():
            setattr(table, key, value)
        self.db.commit()
        self.db.refresh(table)
        return table

    def delete_table(self, table_id: int) -> None:
        table = self.get_table(table_id)
        self.db.delete(table)
        self.db.commit()
