from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import case, func, select, update

from app.joyeria.core.enums import AccountState
from app.joyeria.db.models import AccountMovement, Payment, ReceivableAccount


@dataclass(frozen=True)
class AccountQueryFilters:
    estado: str | None = None
    id_cliente: str | None = None
    incluir_consolidadas: bool = False


class ReceivableRepository:
    def __init__(self, db):
        self.db = db

    def get_account(self, account_id, *, for_update: bool = False) -> ReceivableAccount | None:
        stmt = (
            select(ReceivableAccount)
            .where(ReceivableAccount.id == account_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalars().first()

    def get_pending_for_client(self, client_id, *, for_update: bool = False) -> ReceivableAccount | None:
        stmt = (
            select(ReceivableAccount)
            .where(
                ReceivableAccount.id_cliente == client_id,
                ReceivableAccount.estado == AccountState.PENDING.value,
            )
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalars().first()

    def add_account(self, account: ReceivableAccount) -> ReceivableAccount:
        self.db.add(account)
        self.db.flush()
        return account

    def add_movement(self, movement: AccountMovement) -> AccountMovement:
        self.db.add(movement)
        self.db.flush()
        return movement

    def add_payment(self, payment: Payment) -> Payment:
        self.db.add(payment)
        self.db.flush()
        return payment

    def movements_for(self, account_id) -> list[AccountMovement]:
        stmt = (
            select(AccountMovement)
            .where(AccountMovement.id_cuenta == account_id)
            .order_by(AccountMovement.fecha_movimiento.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def payments_for(self, account_id) -> list[Payment]:
        stmt = select(Payment).where(Payment.id_cuenta == account_id).order_by(Payment.fecha_abono.desc())
        return self.db.execute(stmt).scalars().all()

    def list_for_client(self, client_id) -> list[ReceivableAccount]:
        stmt = (
            select(ReceivableAccount)
            .where(ReceivableAccount.id_cliente == client_id)
            .order_by(ReceivableAccount.created_at.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def list_accounts(
        self, filters: AccountQueryFilters, *, page: int, page_size: int
    ) -> tuple[list[ReceivableAccount], int]:
        query = self._apply_filters(select(ReceivableAccount), filters)
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = (
            self.db.execute(
                query.order_by(ReceivableAccount.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
            )
            .scalars()
            .all()
        )
        return rows, total

    def summary(self, *, today: date, incluir_consolidadas: bool = False) -> dict:
        pending = ReceivableAccount.estado == AccountState.PENDING.value
        overdue = pending & (ReceivableAccount.fecha_vencimiento < today)
        stmt = select(
            func.count(ReceivableAccount.id),
            func.coalesce(func.sum(case((pending, 1), else_=0)), 0),
            func.coalesce(func.sum(case((ReceivableAccount.estado == AccountState.PAID.value, 1), else_=0)), 0),
            func.coalesce(func.sum(ReceivableAccount.monto_total), 0),
            func.coalesce(func.sum(ReceivableAccount.monto_pagado), 0),
            func.coalesce(func.sum(case((pending, ReceivableAccount.saldo_pendiente), else_=0)), 0),
            func.coalesce(func.sum(case((overdue, 1), else_=0)), 0),
            func.coalesce(func.sum(case((overdue, ReceivableAccount.saldo_pendiente), else_=0)), 0),
        )
        if not incluir_consolidadas:
            stmt = stmt.where(ReceivableAccount.estado != AccountState.CONSOLIDATED.value)
        row = self.db.execute(stmt).one()
        return {
            "total_cuentas": int(row[0]),
            "cuentas_pendientes": int(row[1]),
            "cuentas_pagadas": int(row[2]),
            "monto_total": row[3],
            "monto_pagado": row[4],
            "saldo_pendiente": row[5],
            "cuentas_vencidas": int(row[6]),
            "monto_vencido": row[7],
        }

    @staticmethod
    def _apply_filters(query, filters: AccountQueryFilters):
        if filters.estado:
            query = query.where(ReceivableAccount.estado == filters.estado)
        elif not filters.incluir_consolidadas:
            query = query.where(ReceivableAccount.estado != AccountState.CONSOLIDATED.value)
        if filters.id_cliente:
            query = query.where(ReceivableAccount.id_cliente == filters.id_cliente)
        return query

    def payments_between(self, start: datetime, end: datetime) -> list[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.fecha_abono >= start, Payment.fecha_abono < end)
            .order_by(Payment.fecha_abono)
        )
        return self.db.execute(stmt).scalars().all()

    def open_payments(self) -> list[Payment]:
        stmt = select(Payment).where(Payment.cerrado.is_(False)).order_by(Payment.fecha_abono)
        return self.db.execute(stmt).scalars().all()

    def close_payments(self, payment_ids: list, closed_at: datetime) -> None:
        if not payment_ids:
            return
        self.db.execute(
            update(Payment)
            .where(Payment.id.in_(payment_ids))
            .values(cerrado=True, fecha_cierre=closed_at)
            .execution_options(synchronize_session=False)
        )
