from decimal import Decimal

from pydantic import BaseModel, Field

from app.joyeria.core.enums import ExtraIncomeKind, PaymentTender
from app.joyeria.schemas.closings import ExtraIncomeResponse


class ExtraIncomeCreateRequest(BaseModel):
    tipo: ExtraIncomeKind
    monto: Decimal = Field(gt=0)
    metodo_pago: PaymentTender
    descripcion: str = Field(min_length=1, max_length=500)
    notas: str | None = None


class ExtraIncomeListResponse(BaseModel):
    ingresos: list[ExtraIncomeResponse]
    total: int
    pagina: int
    por_pagina: int
    total_paginas: int
