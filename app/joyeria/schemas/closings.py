from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel

from app.joyeria.schemas.receivables import PaymentResponse
from app.joyeria.schemas.sales import SaleResponse


class ReconciliationSummaryResponse(BaseModel):
    fecha: date
    total_ventas: int
    total_ingresos: Decimal
    ventas_efectivo: int
    ventas_tarjeta: int
    ventas_transferencia: int
    ventas_mixtas: int
    total_efectivo_final: Decimal
    total_tarjeta_final: Decimal
    total_transferencia_final: Decimal
    total_abonos: int
    monto_total_abonos: Decimal
    abonos_efectivo: int
    monto_abonos_efectivo: Decimal
    abonos_tarjeta: int
    monto_abonos_tarjeta: Decimal
    abonos_transferencia: int
    monto_abonos_transferencia: Decimal
    total_ingresos_extras: int
    monto_total_ingresos_extras: Decimal
    ingresos_extras_efectivo: int
    monto_ingresos_extras_efectivo: Decimal
    ingresos_extras_tarjeta: int
    monto_ingresos_extras_tarjeta: Decimal
    ingresos_extras_transferencia: int
    monto_ingresos_extras_transferencia: Decimal
    total_efectivo_combinado: Decimal
    total_tarjeta_combinado: Decimal
    total_transferencia_combinado: Decimal
    total_ingresos_combinado: Decimal


class ExtraIncomeResponse(BaseModel):
    id: str
    tipo: str
    monto: Decimal
    metodo_pago: str
    descripcion: str
    notas: str | None
    usuario: str | None
    fecha_ingreso: datetime
    cerrado: bool
    fecha_cierre: datetime | None


class DaySummaryResponse(BaseModel):
    resumen: ReconciliationSummaryResponse
    ventas: list[SaleResponse]
    abonos: list[PaymentResponse]
    ingresos_extras: list[ExtraIncomeResponse]


class TransferredSaleResponse(BaseModel):
    id_original: str
    id_nueva: str
    total: Decimal
    metodo_pago: str
    fecha_venta: datetime


class ClosingSummaryResponse(BaseModel):
    id_cierre: str
    total_ventas: int
    total_ingresos: Decimal
    ventas_transferidas: list[TransferredSaleResponse]
    total_abonos_cerrados: int
    monto_abonos_cerrados: Decimal
    total_ingresos_extras_cerrados: int
    monto_ingresos_extras_cerrados: Decimal
    total_general: Decimal


class CloseRegisterResponse(BaseModel):
    mensaje: str
    resumen: ClosingSummaryResponse


class ClosingResponse(BaseModel):
    id: str
    fecha_cierre: datetime
    usuario: str | None
    total_ventas: int
    monto_total_ventas: Decimal
    total_efectivo: Decimal
    total_tarjeta: Decimal
    total_transferencia: Decimal
    monto_abonos: Decimal
    monto_ingresos_extras: Decimal
    total_general: Decimal
    resumen: dict


class ClosingListResponse(BaseModel):
    cierres: list[ClosingResponse]
    total: int
    pagina: int
    por_pagina: int
    total_paginas: int
