import logging
from datetime import date
from decimal import Decimal

from app.joyeria.core.enums import ExtraIncomeKind, PaymentTender, to_money
from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.core.logging import log_json
from app.joyeria.core.timezone import store_day_bounds
from app.joyeria.db.models import ExtraIncome
from app.joyeria.repos.extra_income import ExtraIncomeRepository

logger = logging.getLogger(__name__)


class ExtraIncomeService:
    def __init__(self, db):
        self.db = db
        self.repo = ExtraIncomeRepository(db)

    def register(
        self,
        kind: ExtraIncomeKind,
        amount: Decimal,
        tender: PaymentTender,
        description: str,
        *,
        actor,
        note: str | None = None,
    ) -> ExtraIncome:
        amount = to_money(amount)
        if amount <= 0:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "monto must be greater than 0"})
        try:
            income = self.repo.add(
                ExtraIncome(
                    tipo=kind.value,
                    monto=float(amount),
                    metodo_pago=tender.value,
                    descripcion=description,
                    notas=note,
                    usuario=actor.username,
                    id_usuario=actor.id,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        log_json(logger, {"event": "extra_income.created", "id": str(income.id), "monto": str(amount)})
        return income

    def list_income(self, *, cerrado: bool | None, fecha: date | None, page: int, page_size: int):
        start = end = None
        if fecha is not None:
            start, end = store_day_bounds(fecha)
        return self.repo.list_income(cerrado=cerrado, start=start, end=end, page=page, page_size=page_size)
