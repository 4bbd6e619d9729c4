from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.joyeria.core.deps import require_active_user
from app.joyeria.core.enums import to_money
from app.joyeria.core.pagination import resolve_page_size, total_pages
from app.joyeria.db.models import CashRegisterClosing, ExtraIncome
from app.joyeria.db.session import get_db
from app.joyeria.routers.receivables import payment_response
from app.joyeria.routers.sales import sale_response
from app.joyeria.schemas.closings import (
    ClosingListResponse,
    ClosingResponse,
    ClosingSummaryResponse,
    CloseRegisterResponse,
    DaySummaryResponse,
    ExtraIncomeResponse,
    ReconciliationSummaryResponse,
    TransferredSaleResponse,
)
from app.joyeria.schemas.sales import SaleResponse
from app.joyeria.services.audit import AuditEventPayload, AuditService
from app.joyeria.services.cash_register import CashRegisterCloser
from app.joyeria.services.idempotency import begin_idempotent_request

router = APIRouter()


def extra_income_response(income: ExtraIncome) -> ExtraIncomeResponse:
    return ExtraIncomeResponse(
        id=str(income.id),
        tipo=income.tipo,
        monto=to_money(income.monto),
        metodo_pago=income.metodo_pago,
        descripcion=income.descripcion,
        notas=income.notas,
        usuario=income.usuario,
        fecha_ingreso=income.fecha_ingreso,
        cerrado=income.cerrado,
        fecha_cierre=income.fecha_cierre,
    )


def _closing_response(closing: CashRegisterClosing) -> ClosingResponse:
    return ClosingResponse(
        id=str(closing.id),
        fecha_cierre=closing.fecha_cierre,
        usuario=closing.usuario,
        total_ventas=closing.total_ventas,
        monto_total_ventas=to_money(closing.monto_total_ventas),
        total_efectivo=to_money(closing.total_efectivo),
        total_tarjeta=to_money(closing.total_tarjeta),
        total_transferencia=to_money(closing.total_transferencia),
        monto_abonos=to_money(closing.monto_abonos),
        monto_ingresos_extras=to_money(closing.monto_ingresos_extras),
        total_general=to_money(closing.total_general),
        resumen=closing.resumen,
    )


@router.post("/cerrar-caja", response_model=CloseRegisterResponse)
def close_register(request: Request, current_user=Depends(require_active_user), db=Depends(get_db)):
    context, replay = begin_idempotent_request(request, db, user_id=str(current_user.id), payload={})
    if replay:
        return replay.as_response()

    result = CashRegisterCloser(db).close(actor=current_user)
    response = CloseRegisterResponse(
        mensaje="Caja cerrada exitosamente",
        resumen=ClosingSummaryResponse(
            id_cierre=str(result.closing.id),
            total_ventas=result.total_ventas,
            total_ingresos=result.total_ingresos,
            ventas_transferidas=[
                TransferredSaleResponse(
                    id_original=row.id_original,
                    id_nueva=row.id_nueva,
                    total=row.total,
                    metodo_pago=row.metodo_pago,
                    fecha_venta=row.fecha_venta,
                )
                for row in result.ventas_transferidas
            ],
            total_abonos_cerrados=result.total_abonos_cerrados,
            monto_abonos_cerrados=result.monto_abonos_cerrados,
            total_ingresos_extras_cerrados=result.total_ingresos_extras_cerrados,
            monto_ingresos_extras_cerrados=result.monto_ingresos_extras_cerrados,
            total_general=result.total_general,
        ),
    )
    if context is not None:
        context.record_success(status_code=200, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload.for_staff(
            request,
            current_user,
            action="register.close",
            entity_type="cash_register_closing",
            entity_id=str(result.closing.id),
            after={"total_ventas": result.total_ventas, "total_general": str(result.total_general)},
        )
    )
    return response


@router.get("/resumen-dia", response_model=DaySummaryResponse)
def day_summary(fecha: date | None = None, _user=Depends(require_active_user), db=Depends(get_db)):
    snapshot = CashRegisterCloser(db).summarize_today(fecha)
    return DaySummaryResponse(
        resumen=ReconciliationSummaryResponse(**snapshot.resumen.as_dict()),
        ventas=[sale_response(sale, es_venta_dia=True) for sale in snapshot.ventas],
        abonos=[payment_response(payment) for payment in snapshot.abonos],
        ingresos_extras=[extra_income_response(income) for income in snapshot.ingresos_extras],
    )


@router.get("/ventas-dia", response_model=list[SaleResponse])
def open_register_sales(_user=Depends(require_active_user), db=Depends(get_db)):
    closer = CashRegisterCloser(db)
    return [sale_response(sale, es_venta_dia=True) for sale in closer.sales.open_register_sales()]


@router.get("/historico", response_model=ClosingListResponse)
def closing_history(
    fecha: date | None = None,
    usuario: str | None = None,
    pagina: int = Query(default=1, ge=1),
    por_pagina: int | None = Query(default=None, ge=1),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    page_size = resolve_page_size(por_pagina)
    rows, total = CashRegisterCloser(db).list_history(fecha=fecha, usuario=usuario, page=pagina, page_size=page_size)
    return ClosingListResponse(
        cierres=[_closing_response(closing) for closing in rows],
        total=total,
        pagina=pagina,
        por_pagina=page_size,
        total_paginas=total_pages(total, page_size),
    )


@router.get("/historico/{closing_id}", response_model=ClosingResponse)
def get_closing(closing_id: UUID, _user=Depends(require_active_user), db=Depends(get_db)):
    return _closing_response(CashRegisterCloser(db).get_closing(closing_id))
