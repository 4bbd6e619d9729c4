from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.joyeria.core.enums import MovementKind


class ProductResponse(BaseModel):
    id: str
    codigo: str
    nombre: str
    categoria: str | None
    precio_venta: Decimal
    stock_actual: int
    stock_minimo: int
    estado: str


class MovementCreateRequest(BaseModel):
    id_joya: UUID
    tipo_movimiento: MovementKind
    cantidad: int = Field(ge=0)
    motivo: str = Field(min_length=1, max_length=500)


class MovementResponse(BaseModel):
    id: str
    id_joya: str
    tipo_movimiento: str
    cantidad: int
    stock_antes: int
    stock_despues: int
    motivo: str
    usuario: str | None
    fecha_movimiento: datetime


class MovementListResponse(BaseModel):
    movimientos: list[MovementResponse]
    total: int
    pagina: int
    por_pagina: int
    total_paginas: int
