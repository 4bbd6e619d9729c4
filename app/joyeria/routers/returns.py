from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from app.joyeria.core.deps import require_active_user
from app.joyeria.core.enums import ReturnKind, to_money
from app.joyeria.db.models import SaleReturn
from app.joyeria.db.session import get_db
from app.joyeria.schemas.returns import ReturnCreateRequest, ReturnListResponse, ReturnResponse
from app.joyeria.services.audit import AuditEventPayload, AuditService
from app.joyeria.services.idempotency import begin_idempotent_request
from app.joyeria.services.returns import ReturnLine, ReturnsService

router = APIRouter()


def _return_response(row: SaleReturn) -> ReturnResponse:
    return ReturnResponse(
        id=str(row.id),
        id_venta=str(row.id_venta),
        id_item_venta=str(row.id_item_venta),
        id_joya=str(row.id_joya) if row.id_joya else None,
        cantidad=row.cantidad,
        precio_unitario=to_money(row.precio_unitario),
        subtotal=to_money(row.subtotal),
        motivo=row.motivo,
        tipo_devolucion=row.tipo_devolucion,
        metodo_reembolso=row.metodo_reembolso,
        estado=row.estado,
        usuario=row.usuario,
        fecha_devolucion=row.fecha_devolucion,
    )


def _list_response(rows: list[SaleReturn]) -> ReturnListResponse:
    refunded = sum(
        (to_money(row.subtotal) for row in rows if row.tipo_devolucion == ReturnKind.REFUND.value),
        Decimal("0.00"),
    )
    return ReturnListResponse(devoluciones=[_return_response(row) for row in rows], total_reembolsado=refunded)


@router.post("/devoluciones", response_model=ReturnListResponse, status_code=201)
def create_return(
    request: Request,
    payload: ReturnCreateRequest,
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    context, replay = begin_idempotent_request(
        request, db, user_id=str(current_user.id), payload=payload.model_dump(mode="json")
    )
    if replay:
        return replay.as_response()

    rows = ReturnsService(db).create(
        payload.id_venta,
        [ReturnLine(item_id=line.id_item_venta, quantity=line.cantidad, reason=line.motivo) for line in payload.items],
        payload.tipo_devolucion,
        actor=current_user,
        refund_tender=payload.metodo_reembolso,
        note=payload.notas,
    )
    response = _list_response(rows)
    if context is not None:
        context.record_success(status_code=201, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload.for_staff(
            request,
            current_user,
            action="sale.return",
            entity_type="sale",
            entity_id=str(payload.id_venta),
            after={"lineas": len(rows), "total_reembolsado": str(response.total_reembolsado)},
            metadata={"tipo_devolucion": payload.tipo_devolucion.value},
        )
    )
    return response


@router.get("/devoluciones", response_model=ReturnListResponse)
def list_returns(id_venta: UUID | None = None, _user=Depends(require_active_user), db=Depends(get_db)):
    return _list_response(ReturnsService(db).list_returns(id_venta))
