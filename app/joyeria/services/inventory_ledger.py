from __future__ import annotations

import logging

from app.joyeria.core.enums import MovementKind
from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.core.logging import log_json
from app.joyeria.db.models import InventoryMovement, Product
from app.joyeria.repos.inventory import InventoryRepository, MovementQueryFilters

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Stock counts plus their append-only movement log.

    ``record`` trusts its caller; the stock-changing helpers below are the
    only callers and guarantee ``after >= 0`` before a row is written.
    """

    def __init__(self, db):
        self.db = db
        self.repo = InventoryRepository(db)

    def get_product(self, product_id) -> Product:
        product = self.repo.get_product(product_id)
        if product is None:
            raise AppError(ErrorCatalog.PRODUCT_NOT_FOUND, details={"id_joya": str(product_id)})
        return product

    def record(
        self,
        *,
        product_id,
        kind: MovementKind,
        quantity: int,
        before: int,
        after: int,
        actor,
        reason: str,
    ) -> InventoryMovement:
        movement = self.repo.add_movement(
            InventoryMovement(
                id_joya=product_id,
                tipo_movimiento=kind.value,
                cantidad=quantity,
                stock_antes=before,
                stock_despues=after,
                motivo=reason,
                usuario=actor.username,
                id_usuario=actor.id,
            )
        )
        log_json(
            logger,
            {
                "event": "inventory.movement",
                "id_joya": str(product_id),
                "tipo_movimiento": kind.value,
                "cantidad": quantity,
                "stock_antes": before,
                "stock_despues": after,
            },
        )
        return movement

    def history_for(self, product_id, limit: int = 10) -> list[InventoryMovement]:
        return self.repo.history_for(product_id, limit)

    def list_movements(self, filters: MovementQueryFilters, *, page: int, page_size: int):
        return self.repo.list_movements(filters, page=page, page_size=page_size)

    def take_units(self, product: Product, quantity: int, *, actor, reason: str) -> InventoryMovement:
        """Atomically removes units; fails without writing when stock is short."""
        if not self.repo.decrement_stock(product.id, quantity):
            raise AppError(
                ErrorCatalog.INSUFFICIENT_STOCK,
                details={
                    "id_joya": str(product.id),
                    "nombre": product.nombre,
                    "stock_disponible": self.repo.current_stock(product.id),
                    "cantidad_solicitada": quantity,
                },
            )
        after = self.repo.current_stock(product.id)
        return self.record(
            product_id=product.id,
            kind=MovementKind.OUT,
            quantity=quantity,
            before=after + quantity,
            after=after,
            actor=actor,
            reason=reason,
        )

    def restore_units(self, product_id, quantity: int, *, actor, reason: str) -> InventoryMovement:
        if not self.repo.increment_stock(product_id, quantity):
            raise AppError(ErrorCatalog.PRODUCT_NOT_FOUND, details={"id_joya": str(product_id)})
        after = self.repo.current_stock(product_id)
        return self.record(
            product_id=product_id,
            kind=MovementKind.IN,
            quantity=quantity,
            before=after - quantity,
            after=after,
            actor=actor,
            reason=reason,
        )

    def apply_manual_movement(
        self, product_id, kind: MovementKind, quantity: int, *, actor, reason: str
    ) -> InventoryMovement:
        """Administrative stock change, committed on its own."""
        try:
            product = self.repo.get_product(product_id, for_update=True)
            if product is None:
                raise AppError(ErrorCatalog.PRODUCT_NOT_FOUND, details={"id_joya": str(product_id)})
            if kind == MovementKind.ADJUSTMENT:
                if quantity < 0:
                    raise AppError(
                        ErrorCatalog.VALIDATION_ERROR, details={"message": "Ajuste requires cantidad >= 0"}
                    )
            elif quantity <= 0:
                raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "cantidad must be greater than 0"})

            if kind == MovementKind.OUT:
                movement = self.take_units(product, quantity, actor=actor, reason=reason)
            elif kind == MovementKind.IN:
                movement = self.restore_units(product.id, quantity, actor=actor, reason=reason)
            else:
                before = self.repo.current_stock(product.id)
                self.repo.set_stock(product.id, quantity)
                movement = self.record(
                    product_id=product.id,
                    kind=kind,
                    quantity=quantity,
                    before=before,
                    after=quantity,
                    actor=actor,
                    reason=reason,
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(product)
        return movement
