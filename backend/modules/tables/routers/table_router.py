# backend/modules/tables/routers/table_router.py

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from core.auth import TokenData, require_tenant_manager, require_tenant_user
from core.database import get_db
from core.demo_data import demo_tables
from core.error_handling import handle_api_errors, with_demo_fallback
from core.response_utils import success_response
from modules.tenants.middleware.tenant_resolution import get_tenant_resolver
from modules.tenants.services.tenant_resolver import TenantResolver

from ..schemas.table_schemas import (
    BulkCreateResult,
    TableBulkCreate,
    TableCreate,
    TableOut,
    TableUpdate,
)
from ..services.table_service import TableService

router = APIRouter(prefix="/api/tenant/tables", tags=["tables"])


def _service(
    db: Session, user: TokenData, resolver: TenantResolver
) -> TableService:
    return TableService(db, user.tenant_id, resolver)


def _out(table, active_orders: int = 0) -> TableOut:
    out = TableOut.model_validate(table)
    out.active_orders = active_orders
    return out


@router.get("")
@with_demo_fallback(demo_tables)
def list_tables(
    request: Request,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    tables = _service(db, user, resolver).list_tables()
    return success_response([_out(table, count) for table, count in tables])


@router.post("", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def create_table(
    data: TableCreate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    table = _service(db, user, resolver).create_table(data)
    return success_response(_out(table), "Masa oluşturuldu")


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def bulk_create_tables(
    data: TableBulkCreate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    created, skipped = _service(db, user, resolver).bulk_create(data)
    return success_response(
        BulkCreateResult(created=[_out(table) for table in created], skipped=skipped),
        f"{len(created)} masa oluşturuldu",
    )


@router.patch("/{table_id}")
@handle_api_errors
def update_table(
    table_id: int,
    data: TableUpdate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    table = _service(db, user, resolver).update_table(table_id, data)
    return success_response(_out(table), "Masa güncellendi")


@router.delete("/{table_id}")
@handle_api_errors
def delete_table(
    table_id: int,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    _service(db, user, resolver).delete_table(table_id)
    return success_response({"deleted": True}, "Masa silindi")
