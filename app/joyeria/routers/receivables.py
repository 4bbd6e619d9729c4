from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.joyeria.core.deps import require_active_user, require_admin
from app.joyeria.core.enums import AccountState, to_money
from app.joyeria.core.pagination import resolve_page_size, total_pages
from app.joyeria.db.models import AccountMovement, Payment, ReceivableAccount
from app.joyeria.db.session import get_db
from app.joyeria.repos.receivables import AccountQueryFilters
from app.joyeria.schemas.receivables import (
    AccountDetailResponse,
    AccountListResponse,
    AccountMovementResponse,
    AccountResponse,
    AccountSummaryResponse,
    ArchiveRequest,
    PaymentCreateRequest,
    PaymentCreateResponse,
    PaymentResponse,
)
from app.joyeria.services.audit import AuditEventPayload, AuditService
from app.joyeria.services.idempotency import begin_idempotent_request
from app.joyeria.services.receivables_ledger import ReceivablesLedger

router = APIRouter()


def _account_fields(account: ReceivableAccount) -> dict:
    return {
        "id": str(account.id),
        "id_cliente": str(account.id_cliente),
        "nombre_cliente": account.client.nombre if account.client else None,
        "id_venta": str(account.id_venta) if account.id_venta else None,
        "monto_total": to_money(account.monto_total),
        "monto_pagado": to_money(account.monto_pagado),
        "saldo_pendiente": to_money(account.saldo_pendiente),
        "estado": account.estado,
        "fecha_vencimiento": account.fecha_vencimiento,
        "fecha_ultimo_pago": account.fecha_ultimo_pago,
        "notas": account.notas,
        "created_at": account.created_at,
        "updated_at": account.updated_at,
    }


def payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=str(payment.id),
        id_cuenta=str(payment.id_cuenta),
        monto=to_money(payment.monto),
        metodo_pago=payment.metodo_pago,
        notas=payment.notas,
        usuario=payment.usuario,
        fecha_abono=payment.fecha_abono,
        cerrado=payment.cerrado,
        fecha_cierre=payment.fecha_cierre,
    )


def _movement_response(movement: AccountMovement) -> AccountMovementResponse:
    return AccountMovementResponse(
        id=str(movement.id),
        tipo=movement.tipo,
        monto=to_money(movement.monto),
        id_venta=str(movement.id_venta) if movement.id_venta else None,
        id_abono=str(movement.id_abono) if movement.id_abono else None,
        descripcion=movement.descripcion,
        usuario=movement.usuario,
        fecha_movimiento=movement.fecha_movimiento,
    )


@router.get("/cuentas-por-cobrar", response_model=AccountListResponse)
def list_accounts(
    estado: AccountState | None = None,
    id_cliente: UUID | None = None,
    incluir_consolidadas: bool = False,
    pagina: int = Query(default=1, ge=1),
    por_pagina: int | None = Query(default=None, ge=1),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    page_size = resolve_page_size(por_pagina)
    filters = AccountQueryFilters(
        estado=estado.value if estado else None,
        id_cliente=str(id_cliente) if id_cliente else None,
        incluir_consolidadas=incluir_consolidadas,
    )
    rows, total = ReceivablesLedger(db).list_accounts(filters, page=pagina, page_size=page_size)
    return AccountListResponse(
        cuentas=[AccountResponse(**_account_fields(account)) for account in rows],
        total=total,
        pagina=pagina,
        por_pagina=page_size,
        total_paginas=total_pages(total, page_size),
    )


@router.get("/cuentas-por-cobrar/resumen", response_model=AccountSummaryResponse)
def accounts_summary(
    incluir_consolidadas: bool = False,
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    return AccountSummaryResponse(**ReceivablesLedger(db).summary(incluir_consolidadas=incluir_consolidadas))


@router.get("/cuentas-por-cobrar/cliente/{client_id}", response_model=list[AccountResponse])
def accounts_for_client(client_id: UUID, _user=Depends(require_active_user), db=Depends(get_db)):
    return [AccountResponse(**_account_fields(account)) for account in ReceivablesLedger(db).list_for_client(client_id)]


@router.get("/cuentas-por-cobrar/{account_id}", response_model=AccountDetailResponse)
def get_account(account_id: UUID, _user=Depends(require_active_user), db=Depends(get_db)):
    detail = ReceivablesLedger(db).get_account(account_id)
    return AccountDetailResponse(
        **_account_fields(detail.account),
        abonos=[payment_response(payment) for payment in detail.payments],
        movimientos=[_movement_response(movement) for movement in detail.movements],
    )


@router.post("/cuentas-por-cobrar/{account_id}/abonos", response_model=PaymentCreateResponse, status_code=201)
def register_payment(
    request: Request,
    account_id: UUID,
    payload: PaymentCreateRequest,
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    context, replay = begin_idempotent_request(
        request, db, user_id=str(current_user.id), payload=payload.model_dump(mode="json")
    )
    if replay:
        return replay.as_response()

    result = ReceivablesLedger(db).apply_payment(
        account_id,
        payload.monto,
        payload.metodo_pago,
        actor=current_user,
        note=payload.notas,
    )
    response = PaymentCreateResponse(
        id_abono=str(result.payment.id),
        nuevo_saldo=to_money(result.account.saldo_pendiente),
        estado=result.account.estado,
    )
    if context is not None:
        context.record_success(status_code=201, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload.for_staff(
            request,
            current_user,
            action="receivable.payment",
            entity_type="receivable_account",
            entity_id=str(account_id),
            after={"saldo_pendiente": str(response.nuevo_saldo), "estado": response.estado},
            metadata={"id_abono": response.id_abono, "monto": str(payload.monto)},
        )
    )
    return response


@router.post("/cuentas-por-cobrar/{account_id}/archivar", response_model=AccountResponse)
def archive_account(
    request: Request,
    account_id: UUID,
    payload: ArchiveRequest,
    current_user=Depends(require_admin),
    db=Depends(get_db),
):
    account = ReceivablesLedger(db).archive(account_id, actor=current_user, note=payload.notas)
    AuditService(db).record_event(
        AuditEventPayload.for_staff(
            request,
            current_user,
            action="receivable.archive",
            entity_type="receivable_account",
            entity_id=str(account.id),
            after={"estado": account.estado},
        )
    )
    return AccountResponse(**_account_fields(account))
