from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.joyeria.core.enums import SaleKind, TenderMethod


class SaleItemCreate(BaseModel):
    id_joya: UUID | None = None
    cantidad: int = Field(gt=0)
    precio_unitario: Decimal = Field(ge=0)
    descripcion: str | None = None


class SaleCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "items": [{"id_joya": "6f1c1b52-0000-4000-8000-000000000001", "cantidad": 1, "precio_unitario": "150000"}],
                "metodo_pago": "Efectivo",
                "descuento": "0",
                "tipo_venta": "Contado",
                "efectivo_recibido": "200000",
            }
        }
    }

    items: list[SaleItemCreate] = Field(min_length=1)
    metodo_pago: TenderMethod
    descuento: Decimal = Field(default=Decimal("0"), ge=0)
    tipo_venta: SaleKind | None = None
    id_cliente: UUID | None = None
    efectivo_recibido: Decimal | None = Field(default=None, ge=0)
    monto_efectivo: Decimal | None = Field(default=None, ge=0)
    monto_tarjeta: Decimal | None = Field(default=None, ge=0)
    monto_transferencia: Decimal | None = Field(default=None, ge=0)
    fecha_vencimiento: date | None = None
    notas: str | None = None


class SaleCreateResponse(BaseModel):
    id: str
    total: Decimal
    cambio: Decimal
    tipo_venta: SaleKind
    metodo_pago: TenderMethod
    id_cuenta_por_cobrar: str | None = None
    cuenta_consolidada: bool | None = None


class SaleItemResponse(BaseModel):
    id: str
    id_joya: str | None
    codigo_joya: str | None = None
    nombre_joya: str | None = None
    descripcion_item: str | None
    cantidad: int
    precio_unitario: Decimal
    subtotal: Decimal


class SaleResponse(BaseModel):
    id: str
    fecha_venta: datetime
    usuario: str | None
    tipo_venta: str
    metodo_pago: str
    subtotal: Decimal
    descuento: Decimal
    total: Decimal
    efectivo_recibido: Decimal | None
    cambio: Decimal | None
    monto_efectivo: Decimal
    monto_tarjeta: Decimal
    monto_transferencia: Decimal
    id_cliente: str | None
    notas: str | None
    es_venta_dia: bool
    id_venta_dia_origen: str | None = None
    items: list[SaleItemResponse] = []


class SaleListResponse(BaseModel):
    ventas: list[SaleResponse]
    total: int
    ventas_dia_count: int
    ventas_historial_count: int
    pagina: int
    por_pagina: int
    total_paginas: int
