from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from app.joyeria.core.enums import (
    MONEY_TOLERANCE,
    AccountMovementKind,
    AccountState,
    PaymentTender,
    to_money,
)
from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.core.logging import log_json
from app.joyeria.core.metrics import metrics
from app.joyeria.core.timezone import store_today
from app.joyeria.db.models import AccountMovement, Payment, ReceivableAccount
from app.joyeria.repos.clients import ClientRepository
from app.joyeria.repos.receivables import AccountQueryFilters, ReceivableRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsolidationResult:
    account: ReceivableAccount
    created: bool


@dataclass(frozen=True)
class PaymentResult:
    payment: Payment
    account: ReceivableAccount


@dataclass(frozen=True)
class AccountDetail:
    account: ReceivableAccount
    payments: list[Payment]
    movements: list[AccountMovement]


def _apply_totals(account: ReceivableAccount, total: Decimal, paid: Decimal) -> None:
    outstanding = (total - paid).quantize(Decimal("0.01"))
    account.monto_total = float(total)
    account.monto_pagado = float(paid)
    account.saldo_pendiente = float(outstanding)
    if outstanding <= MONEY_TOLERANCE:
        account.estado = AccountState.PAID.value
    account.updated_at = datetime.utcnow()


class ReceivablesLedger:
    """One running credit account per client with its movement and payment history."""

    def __init__(self, db):
        self.db = db
        self.repo = ReceivableRepository(db)

    def create_or_consolidate(
        self, client_id, sale_id, amount: Decimal, *, actor, due_date: date | None = None
    ) -> ConsolidationResult:
        """Adds a credit sale to the client's Pending account, opening one if needed.

        Only flushes; the caller owns the transaction.
        """
        amount = to_money(amount)
        account = self.repo.get_pending_for_client(client_id, for_update=True)
        created = account is None
        if created:
            account = ReceivableAccount(
                id_cliente=client_id,
                id_venta=sale_id,
                monto_total=float(amount),
                monto_pagado=0.0,
                saldo_pendiente=float(amount),
                estado=AccountState.PENDING.value,
                fecha_vencimiento=due_date,
            )
            self.repo.add_account(account)
            description = "Venta a credito"
        else:
            _apply_totals(account, to_money(account.monto_total) + amount, to_money(account.monto_pagado))
            if due_date is not None:
                account.fecha_vencimiento = due_date
            self.db.flush()
            description = "Venta a credito consolidada"

        self.repo.add_movement(
            AccountMovement(
                id_cuenta=account.id,
                tipo=AccountMovementKind.CREDIT_SALE.value,
                monto=float(amount),
                id_venta=sale_id,
                descripcion=description,
                usuario=actor.username,
            )
        )
        log_json(
            logger,
            {
                "event": "receivable.created" if created else "receivable.consolidated",
                "id_cuenta": str(account.id),
                "id_cliente": str(client_id),
                "id_venta": str(sale_id),
                "monto": str(amount),
                "saldo_pendiente": str(to_money(account.saldo_pendiente)),
            },
        )
        return ConsolidationResult(account=account, created=created)

    def apply_payment(
        self, account_id, amount: Decimal, tender: PaymentTender, *, actor, note: str | None = None
    ) -> PaymentResult:
        amount = to_money(amount)
        try:
            if amount <= 0:
                raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "monto must be greater than 0"})
            account = self.repo.get_account(account_id, for_update=True)
            if account is None:
                raise AppError(ErrorCatalog.ACCOUNT_NOT_FOUND, details={"id": str(account_id)})
            if account.estado != AccountState.PENDING.value:
                raise AppError(ErrorCatalog.ACCOUNT_NOT_PAYABLE, details={"estado": account.estado})
            outstanding = to_money(account.saldo_pendiente)
            if amount > outstanding + MONEY_TOLERANCE:
                raise AppError(
                    ErrorCatalog.EXCESS_PAYMENT,
                    details={"monto": amount, "saldo_pendiente": outstanding},
                )

            payment = self.repo.add_payment(
                Payment(
                    id_cuenta=account.id,
                    monto=float(amount),
                    metodo_pago=tender.value,
                    notas=note,
                    usuario=actor.username,
                    id_usuario=actor.id,
                )
            )
            _apply_totals(account, to_money(account.monto_total), to_money(account.monto_pagado) + amount)
            account.fecha_ultimo_pago = payment.fecha_abono
            self.repo.add_movement(
                AccountMovement(
                    id_cuenta=account.id,
                    tipo=AccountMovementKind.PAYMENT.value,
                    monto=float(amount),
                    id_abono=payment.id,
                    descripcion=f"Abono ({tender.value})",
                    usuario=actor.username,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        metrics.increment_receivable_payment(tender.value)
        log_json(
            logger,
            {
                "event": "receivable.payment",
                "id_cuenta": str(account.id),
                "id_abono": str(payment.id),
                "monto": str(amount),
                "saldo_pendiente": str(to_money(account.saldo_pendiente)),
                "estado": account.estado,
            },
        )
        return PaymentResult(payment=payment, account=account)

    def archive(self, account_id, *, actor, note: str | None = None) -> ReceivableAccount:
        """Moves an account to Consolidada, which frees the client to open a new Pending one."""
        try:
            account = self.repo.get_account(account_id, for_update=True)
            if account is None:
                raise AppError(ErrorCatalog.ACCOUNT_NOT_FOUND, details={"id": str(account_id)})
            if account.estado == AccountState.CONSOLIDATED.value:
                raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "account is already archived"})
            account.estado = AccountState.CONSOLIDATED.value
            account.updated_at = datetime.utcnow()
            if note:
                account.notas = note
            self.db.flush()
            self.repo.add_movement(
                AccountMovement(
                    id_cuenta=account.id,
                    tipo=AccountMovementKind.ARCHIVE.value,
                    monto=0.0,
                    descripcion=note or "Cuenta archivada",
                    usuario=actor.username,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return account

    def get_account(self, account_id) -> AccountDetail:
        account = self.repo.get_account(account_id)
        if account is None:
            raise AppError(ErrorCatalog.ACCOUNT_NOT_FOUND, details={"id": str(account_id)})
        return AccountDetail(
            account=account,
            payments=self.repo.payments_for(account.id),
            movements=self.repo.movements_for(account.id),
        )

    def list_accounts(self, filters: AccountQueryFilters, *, page: int, page_size: int):
        return self.repo.list_accounts(filters, page=page, page_size=page_size)

    def list_for_client(self, client_id) -> list[ReceivableAccount]:
        if ClientRepository(self.db).get_by_id(client_id) is None:
            raise AppError(ErrorCatalog.CLIENT_NOT_FOUND, details={"id_cliente": str(client_id)})
        return self.repo.list_for_client(client_id)

    def summary(self, *, incluir_consolidadas: bool = False) -> dict:
        totals = self.repo.summary(today=store_today(), incluir_consolidadas=incluir_consolidadas)
        for key in ("monto_total", "monto_pagado", "saldo_pendiente", "monto_vencido"):
            totals[key] = to_money(totals[key])
        return totals
