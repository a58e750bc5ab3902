# backend/modules/menu/models/menu_models.py

from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TenantMixin, TimestampMixin


class StockMovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    WASTE = "WASTE"
    ADJUSTMENT = "ADJUSTMENT"


class Category(Base, TenantMixin, TimestampMixin):
    """Menu categories for organizing menu items"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    menu_items = relationship("MenuItem", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"


class MenuItem(Base, TenantMixin, TimestampMixin):
    """Individual menu items"""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String(500), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    preparation_time = Column(Integer, nullable=True)  # minutes
    calories = Column(Integer, nullable=True)
    allergens = Column(JSON, default=list)
    tags = Column(JSON, default=list)
    sort_order = Column(Integer, nullable=False, default=0)

    # Stock tracking
    track_stock = Column(Boolean, nullable=False, default=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    low_stock_alert = Column(Integer, nullable=False, default=5)
    stock_unit = Column(String(20), nullable=False, default="adet")

    category = relationship("Category", back_populates="menu_items")
    stock_movements = relationship(
        "StockMovement", back_populates="menu_item", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_menu_items_tenant_category", "tenant_id", "category_id"),)

    @property
    def is_low_stock(self) -> bool:
        return self.track_stock and self.stock_quantity <= self.low_stock_alert

    @property
    def is_out_of_stock(self) -> bool:
        return self.track_stock and self.stock_quantity <= 0

    def __repr__(self):
        return f"<MenuItem(id={self.id}, name='{self.name}', price={self.price})>"


class StockMovement(Base, TenantMixin, TimestampMixin):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(StockMovementType), nullable=False)
    # signed: negative for OUT and WASTE
    quantity = Column(Integer, nullable=False)
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(Integer, nullable=True)

    menu_item = relationship("MenuItem", back_populates="stock_movements")
