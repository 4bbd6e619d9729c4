from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.joyeria.core.enums import PaymentTender, ReturnKind


class ReturnLineCreate(BaseModel):
    id_item_venta: UUID
    cantidad: int = Field(gt=0)
    motivo: str = Field(min_length=1, max_length=500)


class ReturnCreateRequest(BaseModel):
    id_venta: UUID
    items: list[ReturnLineCreate] = Field(min_length=1)
    tipo_devolucion: ReturnKind
    metodo_reembolso: PaymentTender | None = None
    notas: str | None = None


class ReturnResponse(BaseModel):
    id: str
    id_venta: str
    id_item_venta: str
    id_joya: str | None
    cantidad: int
    precio_unitario: Decimal
    subtotal: Decimal
    motivo: str
    tipo_devolucion: str
    metodo_reembolso: str | None
    estado: str
    usuario: str | None
    fecha_devolucion: datetime


class ReturnListResponse(BaseModel):
    devoluciones: list[ReturnResponse]
    total_reembolsado: Decimal
