from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from app.joyeria.core.enums import SaleKind, TenderMethod
from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.core.logging import log_json
from app.joyeria.core.metrics import metrics
from app.joyeria.repos.clients import ClientRepository
from app.joyeria.services.inventory_ledger import InventoryLedger
from app.joyeria.services.receivables_ledger import ReceivablesLedger
from app.joyeria.services.sale_ledger import SaleDraft, SaleLedger, SaleLine, TenderSplit, price_sale

logger = logging.getLogger(__name__)

# A lost race on the single-Pending-account index is retried this many times.
_CONSOLIDATION_RETRIES = 1


@dataclass(frozen=True)
class CheckoutRequest:
    lines: list[SaleLine]
    tender: TenderMethod
    sale_kind: SaleKind | None = None
    discount: Decimal | None = None
    client_id: uuid.UUID | None = None
    cash_tendered: Decimal | None = None
    split: TenderSplit | None = None
    note: str | None = None
    due_date: date | None = None


@dataclass(frozen=True)
class CheckoutResult:
    sale_id: uuid.UUID
    total: Decimal
    change: Decimal | None
    sale_kind: SaleKind
    tender: TenderMethod
    account_id: uuid.UUID | None = None
    account_created: bool | None = None


class SaleOrchestrator:
    """Runs one checkout as a single transaction across the sale, stock and receivable ledgers."""

    def __init__(self, db):
        self.db = db
        self.sales = SaleLedger(db)
        self.inventory = InventoryLedger(db)
        self.receivables = ReceivablesLedger(db)

    def checkout(self, request: CheckoutRequest, *, actor) -> CheckoutResult:
        attempts = 0
        while True:
            try:
                result = self._checkout_once(request, actor=actor)
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                if attempts >= _CONSOLIDATION_RETRIES:
                    raise AppError(
                        ErrorCatalog.CONCURRENT_UPDATE,
                        details={"message": "receivable account changed concurrently"},
                    ) from exc
                attempts += 1
                continue
            except Exception:
                self.db.rollback()
                raise
            break

        metrics.increment_sale_created(result.sale_kind.value)
        log_json(
            logger,
            {
                "event": "sale.created",
                "id_venta": str(result.sale_id),
                "tipo_venta": result.sale_kind.value,
                "metodo_pago": result.tender.value,
                "total": str(result.total),
                "id_cuenta_por_cobrar": str(result.account_id) if result.account_id else None,
            },
        )
        return result

    def _checkout_once(self, request: CheckoutRequest, *, actor) -> CheckoutResult:
        draft = price_sale(
            lines=request.lines,
            tender=request.tender,
            sale_kind=request.sale_kind,
            discount=request.discount,
            cash_tendered=request.cash_tendered,
            split=request.split,
            client_id=request.client_id,
            note=request.note,
        )
        products = self._validate_references(draft)

        sale = self.sales.persist(draft, actor=actor)
        for line in draft.lines:
            if line.product_id is None:
                continue
            self.inventory.take_units(
                products[line.product_id],
                line.quantity,
                actor=actor,
                reason=f"Venta #{sale.id}",
            )

        account_id = None
        account_created = None
        if draft.is_credit:
            consolidation = self.receivables.create_or_consolidate(
                draft.client_id,
                sale.id,
                draft.total,
                actor=actor,
                due_date=request.due_date,
            )
            account_id = consolidation.account.id
            account_created = consolidation.created

        return CheckoutResult(
            sale_id=sale.id,
            total=draft.total,
            change=draft.change,
            sale_kind=draft.sale_kind,
            tender=draft.tender,
            account_id=account_id,
            account_created=account_created,
        )

    def _validate_references(self, draft: SaleDraft) -> dict:
        """Checks client, products and stock before anything is written."""
        if draft.client_id is not None and ClientRepository(self.db).get_by_id(draft.client_id) is None:
            raise AppError(ErrorCatalog.CLIENT_NOT_FOUND, details={"id_cliente": str(draft.client_id)})

        requested: dict[uuid.UUID, int] = {}
        for line in draft.lines:
            if line.product_id is not None:
                requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity
        products = self.inventory.repo.get_products(requested.keys())
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                raise AppError(ErrorCatalog.PRODUCT_NOT_FOUND, details={"id_joya": str(product_id)})
            if quantity > product.stock_actual:
                raise AppError(
                    ErrorCatalog.INSUFFICIENT_STOCK,
                    details={
                        "id_joya": str(product_id),
                        "nombre": product.nombre,
                        "stock_disponible": product.stock_actual,
                        "cantidad_solicitada": quantity,
                    },
                )
        return products
