import uuid
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.joyeria.core.enums import AccountState, MovementKind, SaleKind, TenderMethod
from app.joyeria.core.error_catalog import AppError
from app.joyeria.db.models import ReceivableAccount
from app.joyeria.services.inventory_ledger import InventoryLedger
from app.joyeria.services.sale_ledger import SaleLine, TenderSplit, price_sale, resolve_sale_kind
from tests.pos_helpers import create_client, create_product, create_user


def _line(quantity=1, price="100.00", product_id=None):
    return SaleLine(product_id=product_id or uuid.uuid4(), quantity=quantity, unit_price=Decimal(price))


def test_price_sale_applies_discount_and_change():
    draft = price_sale(
        lines=[_line(2, "75000.00")],
        tender=TenderMethod.CASH,
        discount=Decimal("10000"),
        cash_tendered=Decimal("150000"),
    )
    assert draft.subtotal == Decimal("150000.00")
    assert draft.total == Decimal("140000.00")
    assert draft.change == Decimal("10000.00")
    assert draft.split == TenderSplit(cash=Decimal("140000.00"))
    assert draft.sale_kind == SaleKind.CASH_BASIS


def test_price_sale_mixed_change_comes_from_cash_component():
    draft = price_sale(
        lines=[_line(1, "150000")],
        tender=TenderMethod.MIXED,
        cash_tendered=Decimal("120000"),
        split=TenderSplit(cash=Decimal("100000"), card=Decimal("50000")),
    )
    assert draft.change == Decimal("20000.00")
    assert draft.split.card == Decimal("50000.00")


@pytest.mark.parametrize(
    ("kwargs", "code"),
    [
        ({"lines": [], "tender": TenderMethod.CASH}, "VALIDATION_ERROR"),
        ({"lines": [_line()], "tender": TenderMethod.CREDIT}, "VALIDATION_ERROR"),
        ({"lines": [_line()], "tender": TenderMethod.CASH, "cash_tendered": Decimal("99.99")}, "INSUFFICIENT_CASH"),
        (
            {
                "lines": [_line()],
                "tender": TenderMethod.MIXED,
                "split": TenderSplit(cash=Decimal("50"), card=Decimal("49.98")),
            },
            "INVALID_TENDER",
        ),
    ],
)
def test_price_sale_rejections(kwargs, code):
    with pytest.raises(AppError) as exc_info:
        price_sale(**kwargs)
    assert exc_info.value.error.code == code


def test_credit_marker_on_either_field_normalises_both():
    assert resolve_sale_kind(TenderMethod.CREDIT, None) == (TenderMethod.CREDIT, SaleKind.CREDIT)
    assert resolve_sale_kind(TenderMethod.CASH, SaleKind.CREDIT) == (TenderMethod.CREDIT, SaleKind.CREDIT)
    assert resolve_sale_kind(TenderMethod.CARD, SaleKind.CASH_BASIS) == (TenderMethod.CARD, SaleKind.CASH_BASIS)


def test_inventory_history_is_newest_first_and_limited(db_session):
    actor = create_user(db_session, suffix="ledger")
    product = create_product(db_session, codigo="LED-1", stock=10)
    ledger = InventoryLedger(db_session)

    for quantity in (1, 2, 3):
        ledger.apply_manual_movement(product.id, MovementKind.OUT, quantity, actor=actor, reason=f"Salida {quantity}")

    history = ledger.history_for(product.id, limit=2)
    assert [movement.cantidad for movement in history] == [3, 2]
    assert history[0].stock_antes == 7
    assert history[0].stock_despues == 4


def test_take_units_refuses_to_go_negative(db_session):
    actor = create_user(db_session, suffix="ledger-neg")
    product = create_product(db_session, codigo="LED-2", stock=1)
    ledger = InventoryLedger(db_session)

    with pytest.raises(AppError) as exc_info:
        ledger.take_units(product, 2, actor=actor, reason="Venta")
    db_session.rollback()

    assert exc_info.value.error.code == "INSUFFICIENT_STOCK"
    assert exc_info.value.details["stock_disponible"] == 1
    assert ledger.history_for(product.id) == []


def test_second_pending_account_for_client_violates_index(db_session):
    customer = create_client(db_session)

    def pending_account():
        return ReceivableAccount(
            id_cliente=customer.id,
            monto_total=100.0,
            monto_pagado=0.0,
            saldo_pendiente=100.0,
            estado=AccountState.PENDING.value,
        )

    db_session.add(pending_account())
    db_session.commit()

    db_session.add(pending_account())
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()
