from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.joyeria.core.deps import require_active_user, require_admin
from app.joyeria.core.enums import MovementKind, to_money
from app.joyeria.core.pagination import resolve_page_size, total_pages
from app.joyeria.core.timezone import store_day_bounds
from app.joyeria.db.models import InventoryMovement
from app.joyeria.db.session import get_db
from app.joyeria.repos.inventory import MovementQueryFilters
from app.joyeria.schemas.inventory import (
    MovementCreateRequest,
    MovementListResponse,
    MovementResponse,
    ProductResponse,
)
from app.joyeria.services.audit import AuditEventPayload, AuditService
from app.joyeria.services.idempotency import begin_idempotent_request
from app.joyeria.services.inventory_ledger import InventoryLedger

router = APIRouter()


def _movement_response(movement: InventoryMovement) -> MovementResponse:
    return MovementResponse(
        id=str(movement.id),
        id_joya=str(movement.id_joya),
        tipo_movimiento=movement.tipo_movimiento,
        cantidad=movement.cantidad,
        stock_antes=movement.stock_antes,
        stock_despues=movement.stock_despues,
        motivo=movement.motivo,
        usuario=movement.usuario,
        fecha_movimiento=movement.fecha_movimiento,
    )


@router.get("/movimientos", response_model=MovementListResponse)
def list_movements(
    id_joya: UUID | None = None,
    tipo_movimiento: MovementKind | None = None,
    fecha_desde: date | None = None,
    fecha_hasta: date | None = None,
    pagina: int = Query(default=1, ge=1),
    por_pagina: int | None = Query(default=None, ge=1),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    page_size = resolve_page_size(por_pagina)
    filters = MovementQueryFilters(
        id_joya=str(id_joya) if id_joya else None,
        tipo_movimiento=tipo_movimiento.value if tipo_movimiento else None,
        fecha_desde=store_day_bounds(fecha_desde)[0] if fecha_desde else None,
        fecha_hasta=store_day_bounds(fecha_hasta)[1] if fecha_hasta else None,
    )
    rows, total = InventoryLedger(db).list_movements(filters, page=pagina, page_size=page_size)
    return MovementListResponse(
        movimientos=[_movement_response(row) for row in rows],
        total=total,
        pagina=pagina,
        por_pagina=page_size,
        total_paginas=total_pages(total, page_size),
    )


@router.post("/movimientos", response_model=MovementResponse, status_code=201)
def create_movement(
    request: Request,
    payload: MovementCreateRequest,
    current_user=Depends(require_admin),
    db=Depends(get_db),
):
    context, replay = begin_idempotent_request(
        request, db, user_id=str(current_user.id), payload=payload.model_dump(mode="json")
    )
    if replay:
        return replay.as_response()

    movement = InventoryLedger(db).apply_manual_movement(
        payload.id_joya,
        payload.tipo_movimiento,
        payload.cantidad,
        actor=current_user,
        reason=payload.motivo,
    )
    response = _movement_response(movement)
    if context is not None:
        context.record_success(status_code=201, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload.for_staff(
            request,
            current_user,
            action="inventory.movement",
            entity_type="product",
            entity_id=str(payload.id_joya),
            before={"stock_actual": movement.stock_antes},
            after={"stock_actual": movement.stock_despues},
            metadata={"tipo_movimiento": movement.tipo_movimiento, "motivo": movement.motivo},
        )
    )
    return response


@router.get("/joyas/{product_id}", response_model=ProductResponse)
def get_product(product_id: UUID, _user=Depends(require_active_user), db=Depends(get_db)):
    product = InventoryLedger(db).get_product(product_id)
    return ProductResponse(
        id=str(product.id),
        codigo=product.codigo,
        nombre=product.nombre,
        categoria=product.categoria,
        precio_venta=to_money(product.precio_venta),
        stock_actual=product.stock_actual,
        stock_minimo=product.stock_minimo,
        estado=product.estado,
    )


@router.get("/joyas/{product_id}/movimientos", response_model=list[MovementResponse])
def product_history(
    product_id: UUID,
    limite: int = Query(default=10, ge=1, le=200),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    ledger = InventoryLedger(db)
    ledger.get_product(product_id)
    return [_movement_response(row) for row in ledger.history_for(product_id, limite)]
