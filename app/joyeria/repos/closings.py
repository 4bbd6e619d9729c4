from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select

from app.joyeria.db.models import CashRegisterClosing


class ClosingRepository:
    def __init__(self, db):
        self.db = db

    def add(self, closing: CashRegisterClosing) -> CashRegisterClosing:
        self.db.add(closing)
        self.db.flush()
        return closing

    def get_by_id(self, closing_id) -> CashRegisterClosing | None:
        return self.db.get(CashRegisterClosing, closing_id)

    def list_closings(
        self,
        *,
        start: datetime | None,
        end: datetime | None,
        usuario: str | None,
        page: int,
        page_size: int,
    ) -> tuple[list[CashRegisterClosing], int]:
        query = select(CashRegisterClosing)
        if start is not None:
            query = query.where(CashRegisterClosing.fecha_cierre >= start)
        if end is not None:
            query = query.where(CashRegisterClosing.fecha_cierre < end)
        if usuario:
            query = query.where(CashRegisterClosing.usuario == usuario)
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = (
            self.db.execute(
                query.order_by(CashRegisterClosing.fecha_cierre.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            .scalars()
            .all()
        )
        return rows, total
