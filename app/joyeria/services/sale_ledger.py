from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from app.joyeria.core.enums import CENTS, MONEY_TOLERANCE, SaleKind, TenderMethod, to_money
from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.db.models import DaySale, DaySaleItem, Sale, SaleItem
from app.joyeria.repos.sales import SaleQueryFilters, SaleRepository

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class SaleLine:
    product_id: uuid.UUID | None
    quantity: int
    unit_price: Decimal
    description: str | None = None

    @property
    def subtotal(self) -> Decimal:
        return (self.unit_price * Decimal(self.quantity)).quantize(CENTS)


@dataclass(frozen=True)
class TenderSplit:
    cash: Decimal = ZERO
    card: Decimal = ZERO
    transfer: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.cash + self.card + self.transfer


@dataclass(frozen=True)
class SaleDraft:
    """A priced and tender-validated sale that has not been written yet."""

    tender: TenderMethod
    sale_kind: SaleKind
    lines: list[SaleLine]
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    split: TenderSplit
    cash_tendered: Decimal | None = None
    change: Decimal | None = None
    client_id: uuid.UUID | None = None
    note: str | None = None
    sold_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_credit(self) -> bool:
        return self.sale_kind == SaleKind.CREDIT


def resolve_sale_kind(tender: TenderMethod, sale_kind: SaleKind | None) -> tuple[TenderMethod, SaleKind]:
    """Either marker makes a sale credit; both fields are normalised to agree."""
    if tender == TenderMethod.CREDIT or sale_kind == SaleKind.CREDIT:
        return TenderMethod.CREDIT, SaleKind.CREDIT
    return tender, SaleKind.CASH_BASIS


def price_sale(
    *,
    lines: list[SaleLine],
    tender: TenderMethod,
    sale_kind: SaleKind | None = None,
    discount: Decimal | None = None,
    cash_tendered: Decimal | None = None,
    split: TenderSplit | None = None,
    client_id: uuid.UUID | None = None,
    note: str | None = None,
) -> SaleDraft:
    if not lines:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "items must not be empty"})
    if tender is None:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "metodo_pago is required"})
    for line in lines:
        if line.quantity <= 0:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "cantidad must be greater than 0"})
        if line.unit_price < 0:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "precio_unitario must not be negative"})

    tender, sale_kind = resolve_sale_kind(tender, sale_kind)
    if sale_kind == SaleKind.CREDIT and client_id is None:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "id_cliente is required for credit sales"})

    subtotal = sum((line.subtotal for line in lines), ZERO)
    discount = to_money(discount)
    if discount < 0 or discount > subtotal:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "descuento must be between 0 and the subtotal", "subtotal": subtotal},
        )
    total = (subtotal - discount).quantize(CENTS)
    cash_tendered = to_money(cash_tendered) if cash_tendered is not None else None

    resolved_split, change = _settle_tender(tender, total, cash_tendered, split)
    return SaleDraft(
        tender=tender,
        sale_kind=sale_kind,
        lines=list(lines),
        subtotal=subtotal,
        discount=discount,
        total=total,
        split=resolved_split,
        cash_tendered=cash_tendered if change is not None else None,
        change=change,
        client_id=client_id,
        note=note,
    )


def _settle_tender(
    tender: TenderMethod, total: Decimal, cash_tendered: Decimal | None, split: TenderSplit | None
) -> tuple[TenderSplit, Decimal | None]:
    if tender == TenderMethod.CREDIT:
        return TenderSplit(), None
    if tender == TenderMethod.CARD:
        return TenderSplit(card=total), None
    if tender == TenderMethod.TRANSFER:
        return TenderSplit(transfer=total), None

    if tender == TenderMethod.CASH:
        resolved = TenderSplit(cash=total)
    else:
        resolved = TenderSplit(
            cash=to_money(split.cash if split else None),
            card=to_money(split.card if split else None),
            transfer=to_money(split.transfer if split else None),
        )
        if min(resolved.cash, resolved.card, resolved.transfer) < 0:
            raise AppError(ErrorCatalog.INVALID_TENDER, details={"message": "split amounts must not be negative"})
        if abs(resolved.total - total) > MONEY_TOLERANCE:
            raise AppError(
                ErrorCatalog.INVALID_TENDER,
                details={
                    "total": total,
                    "monto_efectivo": resolved.cash,
                    "monto_tarjeta": resolved.card,
                    "monto_transferencia": resolved.transfer,
                    "diferencia": (resolved.total - total).quantize(CENTS),
                },
            )

    if cash_tendered is None:
        return resolved, None
    change = (cash_tendered - resolved.cash).quantize(CENTS)
    if change < 0:
        raise AppError(
            ErrorCatalog.INSUFFICIENT_CASH,
            details={"efectivo_recibido": cash_tendered, "monto_a_cubrir": resolved.cash},
        )
    return resolved, change


def sale_cash_components(sale: DaySale | Sale) -> TenderSplit:
    """Per-tender amounts a stored sale contributes to the register."""
    tender = sale.metodo_pago
    total = to_money(sale.total)
    if tender == TenderMethod.CASH.value:
        return TenderSplit(cash=total)
    if tender == TenderMethod.CARD.value:
        return TenderSplit(card=total)
    if tender == TenderMethod.TRANSFER.value:
        return TenderSplit(transfer=total)
    if tender == TenderMethod.MIXED.value:
        return TenderSplit(
            cash=to_money(sale.monto_efectivo),
            card=to_money(sale.monto_tarjeta),
            transfer=to_money(sale.monto_transferencia),
        )
    return TenderSplit()


def _optional_float(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


class SaleLedger:
    def __init__(self, db):
        self.db = db
        self.repo = SaleRepository(db)

    def persist(self, draft: SaleDraft, *, actor) -> DaySale | Sale:
        """Writes the header and lines into the partition the sale kind belongs to."""
        header = {
            "fecha_venta": draft.sold_at,
            "id_usuario": actor.id,
            "usuario": actor.username,
            "tipo_venta": draft.sale_kind.value,
            "metodo_pago": draft.tender.value,
            "subtotal": float(draft.subtotal),
            "descuento": float(draft.discount),
            "total": float(draft.total),
            "efectivo_recibido": _optional_float(draft.cash_tendered),
            "cambio": _optional_float(draft.change),
            "monto_efectivo": float(draft.split.cash),
            "monto_tarjeta": float(draft.split.card),
            "monto_transferencia": float(draft.split.transfer),
            "id_cliente": draft.client_id,
            "notas": draft.note,
        }
        if draft.is_credit:
            items = [SaleItem(**self._line_columns(line)) for line in draft.lines]
            return self.repo.add_sale(Sale(**header), items)
        items = [DaySaleItem(**self._line_columns(line)) for line in draft.lines]
        return self.repo.add_day_sale(DaySale(**header), items)

    @staticmethod
    def _line_columns(line: SaleLine) -> dict:
        return {
            "id_joya": line.product_id,
            "descripcion_item": line.description,
            "cantidad": line.quantity,
            "precio_unitario": float(line.unit_price),
            "subtotal": float(line.subtotal),
        }

    def copy_to_history(self, day_sale: DaySale) -> Sale:
        """Permanent copy of an open-register sale keeping its original timestamp."""
        columns = {
            name: getattr(day_sale, name)
            for name in (
                "fecha_venta",
                "id_usuario",
                "usuario",
                "tipo_venta",
                "metodo_pago",
                "subtotal",
                "descuento",
                "total",
                "efectivo_recibido",
                "cambio",
                "monto_efectivo",
                "monto_tarjeta",
                "monto_transferencia",
                "id_cliente",
                "notas",
            )
        }
        items = [
            SaleItem(
                id_joya=item.id_joya,
                descripcion_item=item.descripcion_item,
                cantidad=item.cantidad,
                precio_unitario=item.precio_unitario,
                subtotal=item.subtotal,
            )
            for item in day_sale.items
        ]
        return self.repo.add_sale(Sale(**columns, id_venta_dia_origen=day_sale.id), items)

    def find(self, sale_id) -> tuple[DaySale | Sale, bool]:
        """Looks the sale up in both partitions; the flag is True for open-register sales."""
        day_sale = self.repo.get_day_sale(sale_id)
        if day_sale is not None:
            return day_sale, True
        sale = self.repo.get_sale(sale_id)
        if sale is not None:
            return sale, False
        raise AppError(ErrorCatalog.SALE_NOT_FOUND, details={"id": str(sale_id)})

    def get_history_sale(self, sale_id) -> Sale:
        sale = self.repo.get_sale(sale_id)
        if sale is None:
            raise AppError(ErrorCatalog.SALE_NOT_FOUND, details={"id": str(sale_id)})
        return sale

    def list_sales(self, filters: SaleQueryFilters, *, page: int, page_size: int):
        rows, day_total, history_total = self.repo.list_merged(filters, page=page, page_size=page_size)
        return [(row, isinstance(row, DaySale)) for row in rows], day_total, history_total

    def open_register_sales(self, *, start: datetime | None = None, end: datetime | None = None) -> list[DaySale]:
        return self.repo.list_day_sales(start=start, end=end)
