from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update

from app.joyeria.db.models import ExtraIncome


class ExtraIncomeRepository:
    def __init__(self, db):
        self.db = db

    def add(self, income: ExtraIncome) -> ExtraIncome:
        self.db.add(income)
        self.db.flush()
        return income

    def list_income(
        self,
        *,
        cerrado: bool | None,
        start: datetime | None,
        end: datetime | None,
        page: int,
        page_size: int,
    ) -> tuple[list[ExtraIncome], int]:
        query = select(ExtraIncome)
        if cerrado is not None:
            query = query.where(ExtraIncome.cerrado.is_(cerrado))
        if start is not None:
            query = query.where(ExtraIncome.fecha_ingreso >= start)
        if end is not None:
            query = query.where(ExtraIncome.fecha_ingreso < end)
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = (
            self.db.execute(
                query.order_by(ExtraIncome.fecha_ingreso.desc()).offset((page - 1) * page_size).limit(page_size)
            )
            .scalars()
            .all()
        )
        return rows, total

    def between(self, start: datetime, end: datetime) -> list[ExtraIncome]:
        stmt = (
            select(ExtraIncome)
            .where(ExtraIncome.fecha_ingreso >= start, ExtraIncome.fecha_ingreso < end)
            .order_by(ExtraIncome.fecha_ingreso)
        )
        return self.db.execute(stmt).scalars().all()

    def open_rows(self) -> list[ExtraIncome]:
        stmt = select(ExtraIncome).where(ExtraIncome.cerrado.is_(False)).order_by(ExtraIncome.fecha_ingreso)
        return self.db.execute(stmt).scalars().all()

    def close_rows(self, income_ids: list, closed_at: datetime) -> None:
        if not income_ids:
            return
        self.db.execute(
            update(ExtraIncome)
            .where(ExtraIncome.id.in_(income_ids))
            .values(cerrado=True, fecha_cierre=closed_at)
            .execution_options(synchronize_session=False)
        )
