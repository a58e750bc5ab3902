# backend/modules/tables/schemas/table_schemas.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TableBase(BaseModel):
    number: str = Field(..., min_length=1, max_length=20)
    area: Optional[str] = Field(None, max_length=50)
    capacity: int = Field(4, ge=1, le=100)
    is_active: bool = True

    @field_validator("number")
    @classmethod
    def strip_number(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Masa numarası gerekli")
        return v


class TableCreate(TableBase):
    pass


class TableBulkCreate(BaseModel):
    """Numbered tables start_number .. start_number + count - 1"""
    start_number: int = Field(1, ge=1, le=9999)
    count: int = Field(..., ge=1, le=50)
    area: Optional[str] = Field(None, max_length=50)
    capacity: int = Field(4, ge=1, le=100)


class TableUpdate(BaseModel):
    number: Optional[str] = Field(None, min_length=1, max_length=20)
    area: Optional[str] = Field(None, max_length=50)
    capacity: Optional[int] = Field(None, ge=1, le=100)
    is_active: Optional[bool] = None


class TableOut(TableBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    qr_code: Optional[str] = None
    active_orders: int = 0
    created_at: datetime


class BulkCreateResult(BaseModel):
    created: List[TableOut]
    skipped: List[str]
