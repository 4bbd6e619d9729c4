from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from app.joyeria.core.enums import CENTS, PaymentTender, ReturnKind, to_money
from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.core.logging import log_json
from app.joyeria.db.models import SaleReturn
from app.joyeria.repos.returns import ReturnRepository
from app.joyeria.services.inventory_ledger import InventoryLedger
from app.joyeria.services.sale_ledger import SaleLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReturnLine:
    item_id: object
    quantity: int
    reason: str


class ReturnsService:
    """Approved returns against closed-register sales; each returned unit goes back to stock."""

    def __init__(self, db):
        self.db = db
        self.sales = SaleLedger(db)
        self.inventory = InventoryLedger(db)
        self.repo = ReturnRepository(db)

    def create(
        self,
        sale_id,
        lines: list[ReturnLine],
        kind: ReturnKind,
        *,
        actor,
        refund_tender: PaymentTender | None = None,
        note: str | None = None,
    ) -> list[SaleReturn]:
        try:
            if not lines:
                raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "items must not be empty"})
            if kind == ReturnKind.REFUND and refund_tender is None:
                raise AppError(
                    ErrorCatalog.VALIDATION_ERROR,
                    details={"message": "metodo_reembolso is required for Reembolso"},
                )
            sale = self.sales.get_history_sale(sale_id)
            items = {item.id: item for item in sale.items}

            requested: dict = {}
            for line in lines:
                if line.quantity <= 0:
                    raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "cantidad must be greater than 0"})
                if line.item_id not in items:
                    raise AppError(
                        ErrorCatalog.VALIDATION_ERROR,
                        details={"message": "item does not belong to the sale", "id_item_venta": str(line.item_id)},
                    )
                requested[line.item_id] = requested.get(line.item_id, 0) + line.quantity
            for item_id, quantity in requested.items():
                available = items[item_id].cantidad - self.sales.repo.returned_quantity(item_id)
                if quantity > available:
                    raise AppError(
                        ErrorCatalog.RETURN_NOT_ALLOWED,
                        details={
                            "id_item_venta": str(item_id),
                            "cantidad_disponible": available,
                            "cantidad_solicitada": quantity,
                        },
                    )

            created = []
            for line in lines:
                item = items[line.item_id]
                unit_price = to_money(item.precio_unitario)
                created.append(
                    self.repo.add(
                        SaleReturn(
                            id_venta=sale.id,
                            id_item_venta=item.id,
                            id_joya=item.id_joya,
                            cantidad=line.quantity,
                            precio_unitario=float(unit_price),
                            subtotal=float((unit_price * Decimal(line.quantity)).quantize(CENTS)),
                            motivo=line.reason,
                            tipo_devolucion=kind.value,
                            metodo_reembolso=refund_tender.value if refund_tender else None,
                            notas=note,
                            usuario=actor.username,
                            id_usuario=actor.id,
                        )
                    )
                )
                if item.id_joya is not None:
                    self.inventory.restore_units(
                        item.id_joya,
                        line.quantity,
                        actor=actor,
                        reason=f"Devolucion - Venta #{sale.id} - {line.reason}",
                    )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        log_json(
            logger,
            {
                "event": "sale.returned",
                "id_venta": str(sale.id),
                "lineas": len(created),
                "tipo_devolucion": kind.value,
            },
        )
        return created

    def list_returns(self, sale_id=None) -> list[SaleReturn]:
        return self.repo.list_returns(sale_id=sale_id)
