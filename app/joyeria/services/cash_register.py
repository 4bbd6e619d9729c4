from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal

from app.joyeria.core.enums import CENTS, PaymentTender, SaleKind, TenderMethod, to_money
from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.core.logging import log_json
from app.joyeria.core.metrics import metrics
from app.joyeria.core.timezone import store_day_bounds, store_today
from app.joyeria.db.models import CashRegisterClosing, DaySale, ExtraIncome, Payment
from app.joyeria.repos.closings import ClosingRepository
from app.joyeria.repos.extra_income import ExtraIncomeRepository
from app.joyeria.repos.receivables import ReceivableRepository
from app.joyeria.services.sale_ledger import SaleLedger, sale_cash_components

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class ReconciliationSummary:
    fecha: date
    total_ventas: int = 0
    total_ingresos: Decimal = ZERO
    ventas_efectivo: int = 0
    ventas_tarjeta: int = 0
    ventas_transferencia: int = 0
    ventas_mixtas: int = 0
    total_efectivo_final: Decimal = ZERO
    total_tarjeta_final: Decimal = ZERO
    total_transferencia_final: Decimal = ZERO
    total_abonos: int = 0
    monto_total_abonos: Decimal = ZERO
    abonos_efectivo: int = 0
    monto_abonos_efectivo: Decimal = ZERO
    abonos_tarjeta: int = 0
    monto_abonos_tarjeta: Decimal = ZERO
    abonos_transferencia: int = 0
    monto_abonos_transferencia: Decimal = ZERO
    total_ingresos_extras: int = 0
    monto_total_ingresos_extras: Decimal = ZERO
    ingresos_extras_efectivo: int = 0
    monto_ingresos_extras_efectivo: Decimal = ZERO
    ingresos_extras_tarjeta: int = 0
    monto_ingresos_extras_tarjeta: Decimal = ZERO
    ingresos_extras_transferencia: int = 0
    monto_ingresos_extras_transferencia: Decimal = ZERO

    @property
    def total_efectivo_combinado(self) -> Decimal:
        return self.total_efectivo_final + self.monto_abonos_efectivo + self.monto_ingresos_extras_efectivo

    @property
    def total_tarjeta_combinado(self) -> Decimal:
        return self.total_tarjeta_final + self.monto_abonos_tarjeta + self.monto_ingresos_extras_tarjeta

    @property
    def total_transferencia_combinado(self) -> Decimal:
        return (
            self.total_transferencia_final
            + self.monto_abonos_transferencia
            + self.monto_ingresos_extras_transferencia
        )

    @property
    def total_ingresos_combinado(self) -> Decimal:
        return self.total_ingresos + self.monto_total_abonos + self.monto_total_ingresos_extras

    def as_dict(self) -> dict:
        data = asdict(self)
        data.update(
            total_efectivo_combinado=self.total_efectivo_combinado,
            total_tarjeta_combinado=self.total_tarjeta_combinado,
            total_transferencia_combinado=self.total_transferencia_combinado,
            total_ingresos_combinado=self.total_ingresos_combinado,
        )
        return data

    def as_json(self) -> dict:
        payload = {}
        for key, value in self.as_dict().items():
            if isinstance(value, Decimal):
                value = format(value, "f")
            elif isinstance(value, date):
                value = value.isoformat()
            payload[key] = value
        return payload


@dataclass
class DaySnapshot:
    resumen: ReconciliationSummary
    ventas: list[DaySale] = field(default_factory=list)
    abonos: list[Payment] = field(default_factory=list)
    ingresos_extras: list[ExtraIncome] = field(default_factory=list)


@dataclass
class TransferredSale:
    id_original: str
    id_nueva: str
    total: Decimal
    metodo_pago: str
    fecha_venta: datetime


@dataclass
class ClosingResult:
    closing: CashRegisterClosing
    ventas_transferidas: list[TransferredSale]
    total_ingresos: Decimal
    total_abonos_cerrados: int
    monto_abonos_cerrados: Decimal
    total_ingresos_extras_cerrados: int
    monto_ingresos_extras_cerrados: Decimal

    @property
    def total_ventas(self) -> int:
        return len(self.ventas_transferidas)

    @property
    def total_general(self) -> Decimal:
        return self.total_ingresos + self.monto_abonos_cerrados + self.monto_ingresos_extras_cerrados


def _tally_tenders(rows, summary: ReconciliationSummary, prefix: str) -> None:
    for row in rows:
        amount = to_money(row.monto)
        tender = row.metodo_pago
        if tender == PaymentTender.CASH.value:
            key = "efectivo"
        elif tender == PaymentTender.CARD.value:
            key = "tarjeta"
        elif tender == PaymentTender.TRANSFER.value:
            key = "transferencia"
        else:
            continue
        setattr(summary, f"{prefix}_{key}", getattr(summary, f"{prefix}_{key}") + 1)
        setattr(summary, f"monto_{prefix}_{key}", getattr(summary, f"monto_{prefix}_{key}") + amount)


def build_summary(day: date, sales: list[DaySale], payments: list[Payment], incomes: list[ExtraIncome]):
    summary = ReconciliationSummary(fecha=day)
    tender_counters = {
        TenderMethod.CASH.value: "ventas_efectivo",
        TenderMethod.CARD.value: "ventas_tarjeta",
        TenderMethod.TRANSFER.value: "ventas_transferencia",
        TenderMethod.MIXED.value: "ventas_mixtas",
    }
    for sale in sales:
        if sale.tipo_venta == SaleKind.CREDIT.value:
            continue
        summary.total_ventas += 1
        summary.total_ingresos += to_money(sale.total)
        counter = tender_counters.get(sale.metodo_pago)
        if counter:
            setattr(summary, counter, getattr(summary, counter) + 1)
        split = sale_cash_components(sale)
        summary.total_efectivo_final += split.cash
        summary.total_tarjeta_final += split.card
        summary.total_transferencia_final += split.transfer

    summary.total_abonos = len(payments)
    summary.monto_total_abonos = sum((to_money(payment.monto) for payment in payments), ZERO)
    _tally_tenders(payments, summary, "abonos")

    summary.total_ingresos_extras = len(incomes)
    summary.monto_total_ingresos_extras = sum((to_money(income.monto) for income in incomes), ZERO)
    _tally_tenders(incomes, summary, "ingresos_extras")
    return summary


class CashRegisterCloser:
    """Reconciles the open register and drains it into the permanent sale history."""

    def __init__(self, db):
        self.db = db
        self.sales = SaleLedger(db)
        self.receivables = ReceivableRepository(db)
        self.extra_income = ExtraIncomeRepository(db)
        self.closings = ClosingRepository(db)

    def summarize_today(self, fecha: date | None = None) -> DaySnapshot:
        """Read-only preview of the store day; safe to call any number of times."""
        day = fecha or store_today()
        start, end = store_day_bounds(day)
        sales = self.sales.open_register_sales(start=start, end=end)
        payments = [payment for payment in self.receivables.payments_between(start, end) if not payment.cerrado]
        incomes = [income for income in self.extra_income.between(start, end) if not income.cerrado]
        return DaySnapshot(
            resumen=build_summary(day, sales, payments, incomes),
            ventas=[sale for sale in sales if sale.tipo_venta != SaleKind.CREDIT.value],
            abonos=payments,
            ingresos_extras=incomes,
        )

    def close(self, *, actor) -> ClosingResult:
        """Moves every open-register sale into history and snapshots the day in one transaction."""
        try:
            day_sales = self.sales.repo.lock_day_sales()
            if not day_sales:
                raise AppError(ErrorCatalog.NOTHING_TO_CLOSE)
            payments = self.receivables.open_payments()
            incomes = self.extra_income.open_rows()
            # The snapshot covers exactly the rows this closing drains, whatever day they were taken.
            resumen = build_summary(store_today(), day_sales, payments, incomes)

            transferred = []
            for day_sale in day_sales:
                sale = self.sales.copy_to_history(day_sale)
                transferred.append(
                    TransferredSale(
                        id_original=str(day_sale.id),
                        id_nueva=str(sale.id),
                        total=to_money(sale.total),
                        metodo_pago=sale.metodo_pago,
                        fecha_venta=sale.fecha_venta,
                    )
                )
            self.sales.repo.delete_day_sales([day_sale.id for day_sale in day_sales])
            for day_sale in day_sales:
                for item in day_sale.items:
                    self.db.expunge(item)
                self.db.expunge(day_sale)

            closed_at = datetime.utcnow()
            self.receivables.close_payments([payment.id for payment in payments], closed_at)
            self.extra_income.close_rows([income.id for income in incomes], closed_at)

            total_ingresos = sum((row.total for row in transferred), ZERO).quantize(CENTS)
            monto_abonos = sum((to_money(payment.monto) for payment in payments), ZERO)
            monto_ingresos = sum((to_money(income.monto) for income in incomes), ZERO)
            closing = self.closings.add(
                CashRegisterClosing(
                    fecha_cierre=closed_at,
                    usuario=actor.username,
                    id_usuario=actor.id,
                    total_ventas=len(transferred),
                    monto_total_ventas=float(total_ingresos),
                    total_efectivo=float(resumen.total_efectivo_combinado),
                    total_tarjeta=float(resumen.total_tarjeta_combinado),
                    total_transferencia=float(resumen.total_transferencia_combinado),
                    monto_abonos=float(monto_abonos),
                    monto_ingresos_extras=float(monto_ingresos),
                    total_general=float(total_ingresos + monto_abonos + monto_ingresos),
                    resumen=resumen.as_json(),
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        result = ClosingResult(
            closing=closing,
            ventas_transferidas=transferred,
            total_ingresos=total_ingresos,
            total_abonos_cerrados=len(payments),
            monto_abonos_cerrados=monto_abonos,
            total_ingresos_extras_cerrados=len(incomes),
            monto_ingresos_extras_cerrados=monto_ingresos,
        )
        metrics.record_register_closing(result.total_ventas)
        log_json(
            logger,
            {
                "event": "register.closed",
                "id_cierre": str(closing.id),
                "total_ventas": result.total_ventas,
                "total_ingresos": str(result.total_ingresos),
                "total_general": str(result.total_general),
            },
        )
        return result

    def list_history(
        self,
        *,
        fecha: date | None,
        usuario: str | None,
        page: int,
        page_size: int,
    ) -> tuple[list[CashRegisterClosing], int]:
        start = end = None
        if fecha is not None:
            start, end = store_day_bounds(fecha)
        return self.closings.list_closings(start=start, end=end, usuario=usuario, page=page, page_size=page_size)

    def get_closing(self, closing_id) -> CashRegisterClosing:
        closing = self.closings.get_by_id(closing_id)
        if closing is None:
            raise AppError(ErrorCatalog.CLOSING_NOT_FOUND, details={"id": str(closing_id)})
        return closing
