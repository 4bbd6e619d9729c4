from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.joyeria.core.deps import require_active_user
from app.joyeria.core.enums import SaleKind, TenderMethod, to_money
from app.joyeria.core.pagination import resolve_page_size, total_pages
from app.joyeria.core.timezone import store_day_bounds
from app.joyeria.db.models import DaySale, Sale
from app.joyeria.db.session import get_db
from app.joyeria.repos.sales import SaleQueryFilters
from app.joyeria.schemas.sales import (
    SaleCreateRequest,
    SaleCreateResponse,
    SaleItemResponse,
    SaleListResponse,
    SaleResponse,
)
from app.joyeria.services.audit import AuditEventPayload, AuditService
from app.joyeria.services.idempotency import begin_idempotent_request
from app.joyeria.services.sale_ledger import SaleLedger, SaleLine, TenderSplit
from app.joyeria.services.sale_orchestrator import CheckoutRequest, SaleOrchestrator

router = APIRouter()


def _optional_money(value) -> Decimal | None:
    return to_money(value) if value is not None else None


def sale_response(sale: DaySale | Sale, *, es_venta_dia: bool, with_items: bool = True) -> SaleResponse:
    items = []
    if with_items:
        for item in sale.items:
            product = item.product
            items.append(
                SaleItemResponse(
                    id=str(item.id),
                    id_joya=str(item.id_joya) if item.id_joya else None,
                    codigo_joya=product.codigo if product else None,
                    nombre_joya=product.nombre if product else None,
                    descripcion_item=item.descripcion_item,
                    cantidad=item.cantidad,
                    precio_unitario=to_money(item.precio_unitario),
                    subtotal=to_money(item.subtotal),
                )
            )
    origin = getattr(sale, "id_venta_dia_origen", None)
    return SaleResponse(
        id=str(sale.id),
        fecha_venta=sale.fecha_venta,
        usuario=sale.usuario,
        tipo_venta=sale.tipo_venta,
        metodo_pago=sale.metodo_pago,
        subtotal=to_money(sale.subtotal),
        descuento=to_money(sale.descuento),
        total=to_money(sale.total),
        efectivo_recibido=_optional_money(sale.efectivo_recibido),
        cambio=_optional_money(sale.cambio),
        monto_efectivo=to_money(sale.monto_efectivo),
        monto_tarjeta=to_money(sale.monto_tarjeta),
        monto_transferencia=to_money(sale.monto_transferencia),
        id_cliente=str(sale.id_cliente) if sale.id_cliente else None,
        notas=sale.notas,
        es_venta_dia=es_venta_dia,
        id_venta_dia_origen=str(origin) if origin else None,
        items=items,
    )


@router.post("/ventas", response_model=SaleCreateResponse, status_code=201)
def create_sale(
    request: Request,
    payload: SaleCreateRequest,
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    context, replay = begin_idempotent_request(
        request, db, user_id=str(current_user.id), payload=payload.model_dump(mode="json")
    )
    if replay:
        return replay.as_response()

    checkout = CheckoutRequest(
        lines=[
            SaleLine(
                product_id=item.id_joya,
                quantity=item.cantidad,
                unit_price=to_money(item.precio_unitario),
                description=item.descripcion,
            )
            for item in payload.items
        ],
        tender=payload.metodo_pago,
        sale_kind=payload.tipo_venta,
        discount=payload.descuento,
        client_id=payload.id_cliente,
        cash_tendered=payload.efectivo_recibido,
        split=TenderSplit(
            cash=to_money(payload.monto_efectivo),
            card=to_money(payload.monto_tarjeta),
            transfer=to_money(payload.monto_transferencia),
        ),
        note=payload.notas,
        due_date=payload.fecha_vencimiento,
    )
    result = SaleOrchestrator(db).checkout(checkout, actor=current_user)

    response = SaleCreateResponse(
        id=str(result.sale_id),
        total=result.total,
        cambio=result.change if result.change is not None else Decimal("0.00"),
        tipo_venta=result.sale_kind,
        metodo_pago=result.tender,
        id_cuenta_por_cobrar=str(result.account_id) if result.account_id else None,
        cuenta_consolidada=(not result.account_created) if result.account_id else None,
    )
    if context is not None:
        context.record_success(status_code=201, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload.for_staff(
            request,
            current_user,
            action="sale.create",
            entity_type="sale",
            entity_id=str(result.sale_id),
            after={
                "total": str(result.total),
                "tipo_venta": result.sale_kind.value,
                "metodo_pago": result.tender.value,
                "lines": len(checkout.lines),
            },
            metadata={"id_cuenta_por_cobrar": response.id_cuenta_por_cobrar},
        )
    )
    return response


@router.get("/ventas", response_model=SaleListResponse)
def list_sales(
    fecha_desde: date | None = None,
    fecha_hasta: date | None = None,
    metodo_pago: TenderMethod | None = None,
    tipo_venta: SaleKind | None = None,
    id_cliente: UUID | None = None,
    pagina: int = Query(default=1, ge=1),
    por_pagina: int | None = Query(default=None, ge=1),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    page_size = resolve_page_size(por_pagina)
    filters = SaleQueryFilters(
        fecha_desde=store_day_bounds(fecha_desde)[0] if fecha_desde else None,
        fecha_hasta=store_day_bounds(fecha_hasta)[1] if fecha_hasta else None,
        metodo_pago=metodo_pago.value if metodo_pago else None,
        tipo_venta=tipo_venta.value if tipo_venta else None,
        id_cliente=str(id_cliente) if id_cliente else None,
    )
    rows, day_total, history_total = SaleLedger(db).list_sales(filters, page=pagina, page_size=page_size)
    total = day_total + history_total
    return SaleListResponse(
        ventas=[sale_response(sale, es_venta_dia=is_day, with_items=False) for sale, is_day in rows],
        total=total,
        ventas_dia_count=day_total,
        ventas_historial_count=history_total,
        pagina=pagina,
        por_pagina=page_size,
        total_paginas=total_pages(total, page_size),
    )


@router.get("/ventas/{sale_id}", response_model=SaleResponse)
def get_sale(sale_id: UUID, _user=Depends(require_active_user), db=Depends(get_db)):
    sale, is_day = SaleLedger(db).find(sale_id)
    return sale_response(sale, es_venta_dia=is_day)
