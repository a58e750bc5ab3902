# backend/modules/tables/models/table_models.py

from sqlalchemy import Boolean, Column, Integer, String, UniqueConstraint

from core.database import Base
from core.mixins import TenantMixin, TimestampMixin


class Table(Base, TenantMixin, TimestampMixin):
    """Restaurant table with its QR menu link"""
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(String(20), nullable=False)
    area = Column(String(50), nullable=True)
    capacity = Column(Integer, nullable=False, default=4)
    qr_code = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "number", name="uq_table_tenant_number"),
    )

    def __repr__(self):
        return f"<Table(id={self.id}, number='{self.number}')>"
