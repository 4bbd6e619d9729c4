from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update

from app.joyeria.db.models import InventoryMovement, Product


@dataclass(frozen=True)
class MovementQueryFilters:
    id_joya: str | None = None
    tipo_movimiento: str | None = None
    fecha_desde: datetime | None = None
    fecha_hasta: datetime | None = None


class InventoryRepository:
    def __init__(self, db):
        self.db = db

    def get_product(self, product_id, *, for_update: bool = False) -> Product | None:
        stmt = select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalars().first()

    def get_products(self, product_ids) -> dict:
        ids = list({product_id for product_id in product_ids})
        if not ids:
            return {}
        stmt = select(Product).where(Product.id.in_(ids)).execution_options(populate_existing=True)
        rows = self.db.execute(stmt).scalars().all()
        return {row.id: row for row in rows}

    def current_stock(self, product_id) -> int | None:
        return self.db.execute(select(Product.stock_actual).where(Product.id == product_id)).scalar_one_or_none()

    def decrement_stock(self, product_id, quantity: int) -> bool:
        """Conditionally subtracts stock; returns False when fewer than ``quantity`` units remain."""
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_actual >= quantity)
            .values(stock_actual=Product.stock_actual - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def increment_stock(self, product_id, quantity: int) -> bool:
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_actual=Product.stock_actual + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def set_stock(self, product_id, value: int) -> bool:
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_actual=value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def add_movement(self, movement: InventoryMovement) -> InventoryMovement:
        self.db.add(movement)
        self.db.flush()
        return movement

    def history_for(self, product_id, limit: int) -> list[InventoryMovement]:
        stmt = (
            select(InventoryMovement)
            .where(InventoryMovement.id_joya == product_id)
            .order_by(InventoryMovement.fecha_movimiento.desc(), InventoryMovement.id.desc())
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def list_movements(
        self, filters: MovementQueryFilters, *, page: int, page_size: int
    ) -> tuple[list[InventoryMovement], int]:
        query = select(InventoryMovement)
        if filters.id_joya:
            query = query.where(InventoryMovement.id_joya == filters.id_joya)
        if filters.tipo_movimiento:
            query = query.where(InventoryMovement.tipo_movimiento == filters.tipo_movimiento)
        if filters.fecha_desde:
            query = query.where(InventoryMovement.fecha_movimiento >= filters.fecha_desde)
        if filters.fecha_hasta:
            query = query.where(InventoryMovement.fecha_movimiento < filters.fecha_hasta)
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = (
            self.db.execute(
                query.order_by(InventoryMovement.fecha_movimiento.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            .scalars()
            .all()
        )
        return rows, total
