from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import selectinload

from app.joyeria.db.models import DaySale, DaySaleItem, Sale, SaleItem, SaleReturn


@dataclass(frozen=True)
class SaleQueryFilters:
    fecha_desde: datetime | None = None
    fecha_hasta: datetime | None = None
    metodo_pago: str | None = None
    tipo_venta: str | None = None
    id_cliente: str | None = None


class SaleRepository:
    """Both sale partitions behind one interface.

    ``DaySale`` rows are the open register; ``Sale`` rows are the permanent history.
    """

    def __init__(self, db):
        self.db = db

    def add_day_sale(self, sale: DaySale, items: list[DaySaleItem]) -> DaySale:
        self.db.add(sale)
        self.db.flush()
        for position, item in enumerate(items):
            item.id_venta_dia = sale.id
            item.position = position
            self.db.add(item)
        self.db.flush()
        return sale

    def add_sale(self, sale: Sale, items: list[SaleItem]) -> Sale:
        self.db.add(sale)
        self.db.flush()
        for position, item in enumerate(items):
            item.id_venta = sale.id
            item.position = position
            self.db.add(item)
        self.db.flush()
        return sale

    def get_day_sale(self, sale_id) -> DaySale | None:
        stmt = select(DaySale).where(DaySale.id == sale_id).options(selectinload(DaySale.items))
        return self.db.execute(stmt).scalars().first()

    def get_sale(self, sale_id) -> Sale | None:
        stmt = select(Sale).where(Sale.id == sale_id).options(selectinload(Sale.items))
        return self.db.execute(stmt).scalars().first()

    def list_day_sales(self, *, start: datetime | None = None, end: datetime | None = None) -> list[DaySale]:
        stmt = select(DaySale).options(selectinload(DaySale.items))
        if start is not None:
            stmt = stmt.where(DaySale.fecha_venta >= start)
        if end is not None:
            stmt = stmt.where(DaySale.fecha_venta < end)
        return self.db.execute(stmt.order_by(DaySale.fecha_venta.desc())).scalars().all()

    def lock_day_sales(self) -> list[DaySale]:
        stmt = (
            select(DaySale)
            .options(selectinload(DaySale.items))
            .order_by(DaySale.fecha_venta)
            .with_for_update()
        )
        return self.db.execute(stmt).scalars().all()

    def delete_day_sales(self, sale_ids: list) -> None:
        if not sale_ids:
            return
        # Items first: they reference their parent rows.
        self.db.execute(
            delete(DaySaleItem)
            .where(DaySaleItem.id_venta_dia.in_(sale_ids))
            .execution_options(synchronize_session=False)
        )
        self.db.execute(
            delete(DaySale).where(DaySale.id.in_(sale_ids)).execution_options(synchronize_session=False)
        )

    def list_merged(
        self, filters: SaleQueryFilters, *, page: int, page_size: int
    ) -> tuple[list[DaySale | Sale], int, int]:
        """Newest-first page over both partitions plus each partition's match count."""
        day_query = self._apply_filters(select(DaySale), DaySale, filters)
        history_query = self._apply_filters(select(Sale), Sale, filters)
        day_total = self.db.execute(select(func.count()).select_from(day_query.subquery())).scalar_one()
        history_total = self.db.execute(select(func.count()).select_from(history_query.subquery())).scalar_one()

        # The first ``window`` rows of the merged order come from the first ``window`` rows of each side.
        window = page * page_size
        day_rows = (
            self.db.execute(day_query.order_by(DaySale.fecha_venta.desc()).limit(window)).scalars().all()
        )
        history_rows = (
            self.db.execute(history_query.order_by(Sale.fecha_venta.desc()).limit(window)).scalars().all()
        )
        merged = sorted([*day_rows, *history_rows], key=lambda row: row.fecha_venta, reverse=True)
        offset = (page - 1) * page_size
        return merged[offset : offset + page_size], day_total, history_total

    @staticmethod
    def _apply_filters(query, model, filters: SaleQueryFilters):
        if filters.fecha_desde:
            query = query.where(model.fecha_venta >= filters.fecha_desde)
        if filters.fecha_hasta:
            query = query.where(model.fecha_venta < filters.fecha_hasta)
        if filters.metodo_pago:
            query = query.where(model.metodo_pago == filters.metodo_pago)
        if filters.tipo_venta:
            query = query.where(model.tipo_venta == filters.tipo_venta)
        if filters.id_cliente:
            query = query.where(model.id_cliente == filters.id_cliente)
        return query

    def returned_quantity(self, item_id) -> int:
        stmt = select(func.coalesce(func.sum(SaleReturn.cantidad), 0)).where(SaleReturn.id_item_venta == item_id)
        return int(self.db.execute(stmt).scalar_one())
