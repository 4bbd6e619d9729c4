from decimal import Decimal
from enum import Enum

MONEY_TOLERANCE = Decimal("0.01")
CENTS = Decimal("0.01")


class TenderMethod(str, Enum):
    CASH = "Efectivo"
    CARD = "Tarjeta"
    TRANSFER = "Transferencia"
    MIXED = "Mixto"
    CREDIT = "Credito"


class SaleKind(str, Enum):
    CASH_BASIS = "Contado"
    CREDIT = "Credito"


class AccountState(str, Enum):
    PENDING = "Pendiente"
    PAID = "Pagada"
    CONSOLIDATED = "Consolidada"


class MovementKind(str, Enum):
    IN = "Entrada"
    OUT = "Salida"
    ADJUSTMENT = "Ajuste"


class AccountMovementKind(str, Enum):
    CREDIT_SALE = "credit_sale"
    PAYMENT = "payment"
    ARCHIVE = "archive"


class ExtraIncomeKind(str, Enum):
    CASH_FUND = "Fondo de caja"
    LOAN = "Prestamo"
    REFUND = "Devolucion"
    OTHER = "Otros"


class ReturnKind(str, Enum):
    REFUND = "Reembolso"
    EXCHANGE = "Cambio"
    STORE_CREDIT = "Nota de Credito"


class PaymentTender(str, Enum):
    """Tenders accepted for receivable payments and other income."""

    CASH = "Efectivo"
    CARD = "Tarjeta"
    TRANSFER = "Transferencia"


class UserRole(str, Enum):
    ADMIN = "administrador"
    CLERK = "dependiente"


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if isinstance(value, Decimal):
        return value.quantize(CENTS)
    return Decimal(str(value)).quantize(CENTS)
