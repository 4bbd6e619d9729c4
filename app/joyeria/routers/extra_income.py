from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Request

from app.joyeria.core.deps import require_active_user
from app.joyeria.core.pagination import resolve_page_size, total_pages
from app.joyeria.db.session import get_db
from app.joyeria.routers.closings import extra_income_response
from app.joyeria.schemas.closings import ExtraIncomeResponse
from app.joyeria.schemas.extra_income import ExtraIncomeCreateRequest, ExtraIncomeListResponse
from app.joyeria.services.audit import AuditEventPayload, AuditService
from app.joyeria.services.extra_income import ExtraIncomeService
from app.joyeria.services.idempotency import begin_idempotent_request

router = APIRouter()


@router.post("/ingresos-extras", response_model=ExtraIncomeResponse, status_code=201)
def create_extra_income(
    request: Request,
    payload: ExtraIncomeCreateRequest,
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    context, replay = begin_idempotent_request(
        request, db, user_id=str(current_user.id), payload=payload.model_dump(mode="json")
    )
    if replay:
        return replay.as_response()

    income = ExtraIncomeService(db).register(
        payload.tipo,
        payload.monto,
        payload.metodo_pago,
        payload.descripcion,
        actor=current_user,
        note=payload.notas,
    )
    response = extra_income_response(income)
    if context is not None:
        context.record_success(status_code=201, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload.for_staff(
            request,
            current_user,
            action="extra_income.create",
            entity_type="extra_income",
            entity_id=str(income.id),
            after={"tipo": income.tipo, "monto": str(response.monto), "metodo_pago": income.metodo_pago},
        )
    )
    return response


@router.get("/ingresos-extras", response_model=ExtraIncomeListResponse)
def list_extra_income(
    cerrado: bool | None = None,
    fecha: date | None = None,
    pagina: int = Query(default=1, ge=1),
    por_pagina: int | None = Query(default=None, ge=1),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    page_size = resolve_page_size(por_pagina)
    rows, total = ExtraIncomeService(db).list_income(cerrado=cerrado, fecha=fecha, page=pagina, page_size=page_size)
    return ExtraIncomeListResponse(
        ingresos=[extra_income_response(row) for row in rows],
        total=total,
        pagina=pagina,
        por_pagina=page_size,
        total_paginas=total_pages(total, page_size),
    )
