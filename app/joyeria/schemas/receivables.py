from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.joyeria.core.enums import PaymentTender


class AccountResponse(BaseModel):
    id: str
    id_cliente: str
    nombre_cliente: str | None = None
    id_venta: str | None
    monto_total: Decimal
    monto_pagado: Decimal
    saldo_pendiente: Decimal
    estado: str
    fecha_vencimiento: date | None
    fecha_ultimo_pago: datetime | None
    notas: str | None
    created_at: datetime
    updated_at: datetime | None


class PaymentResponse(BaseModel):
    id: str
    id_cuenta: str
    monto: Decimal
    metodo_pago: str
    notas: str | None
    usuario: str | None
    fecha_abono: datetime
    cerrado: bool
    fecha_cierre: datetime | None


class AccountMovementResponse(BaseModel):
    id: str
    tipo: str
    monto: Decimal
    id_venta: str | None
    id_abono: str | None
    descripcion: str | None
    usuario: str | None
    fecha_movimiento: datetime


class AccountDetailResponse(AccountResponse):
    abonos: list[PaymentResponse]
    movimientos: list[AccountMovementResponse]


class AccountListResponse(BaseModel):
    cuentas: list[AccountResponse]
    total: int
    pagina: int
    por_pagina: int
    total_paginas: int


class AccountSummaryResponse(BaseModel):
    total_cuentas: int
    cuentas_pendientes: int
    cuentas_pagadas: int
    monto_total: Decimal
    monto_pagado: Decimal
    saldo_pendiente: Decimal
    cuentas_vencidas: int
    monto_vencido: Decimal


class PaymentCreateRequest(BaseModel):
    monto: Decimal = Field(gt=0)
    metodo_pago: PaymentTender
    notas: str | None = None


class PaymentCreateResponse(BaseModel):
    id_abono: str
    nuevo_saldo: Decimal
    estado: str


class ArchiveRequest(BaseModel):
    notas: str | None = None
