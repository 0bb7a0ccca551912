from datetime import date
from decimal import Decimal

import pytest

from gdpdu_export.formatting import format_amount, format_date
from gdpdu_export.ledger import (
    LedgerError,
    add_account,
    add_split,
    add_transaction,
    descendants_sorted,
    ensure_commodity,
    get_root_account,
    reverse_transaction,
    void_transaction,
)
from gdpdu_export.models import Account, Commodity


def test_root_account_created_once(session):
    root = get_root_account(session)
    assert root.is_root
    assert get_root_account(session).id == root.id
    assert root not in descendants_sorted(session)


def test_full_name_excludes_root(session):
    assets = add_account(session, "Assets")
    bank = add_account(session, "Bank", parent=assets)
    assert assets.full_name() == "Assets"
    assert bank.full_name() == "Assets:Bank"
    assert bank.full_name(".") == "Assets.Bank"
    assert get_root_account(session).full_name() == ""


def test_child_inherits_parent_commodity(session):
    eur = ensure_commodity(session, "EUR", "Euro")
    assets = add_account(session, "Assets", commodity=eur)
    bank = add_account(session, "Bank", parent=assets)
    assert bank.commodity is eur


def test_add_account_rejects_foreign_parent(session):
    with pytest.raises(LedgerError):
        add_account(session, "Orphan", parent=Account(name="Not saved"))


def test_split_amount_stored_at_commodity_fraction(session):
    btc = ensure_commodity(session, "BTC", "Bitcoin", fraction=100_000_000)
    wallet = add_account(session, "Wallet", commodity=btc)
    txn = add_transaction(session, date(2024, 1, 1))
    split = add_split(session, txn, wallet, "0.00012345")
    assert split.amount_num == 12345
    assert split.amount_denom == 100_000_000
    assert split.amount == Decimal("0.00012345")


def test_void_keeps_former_amount(session):
    bank = add_account(session, "Bank")
    txn = add_transaction(session, date(2024, 1, 1))
    split = add_split(session, txn, bank, "10.00")

    void_transaction(session, txn, "typo")

    assert txn.voided is True
    assert txn.void_reason == "typo"
    assert split.amount == 0
    assert split.void_former_amount == Decimal("10")
    with pytest.raises(LedgerError):
        void_transaction(session, txn, "again")
    with pytest.raises(LedgerError):
        add_split(session, txn, bank, "1")


def test_reverse_negates_splits(session):
    bank = add_account(session, "Bank")
    income = add_account(session, "Income")
    txn = add_transaction(session, date(2024, 1, 1), description="Invoice 7", num="7")
    add_split(session, txn, bank, "50", memo="paid")
    add_split(session, txn, income, "-50")

    reversal = reverse_transaction(session, txn, date_posted=date(2024, 1, 3))

    assert txn.reversed_by is reversal
    assert reversal.description == "Invoice 7"
    assert sorted(s.amount for s in reversal.splits) == [Decimal("-50"), Decimal("50")]
    with pytest.raises(LedgerError):
        reverse_transaction(session, txn)


def test_ensure_commodity_rejects_bad_fraction(session):
    with pytest.raises(LedgerError):
        ensure_commodity(session, "XXX", fraction=0)


def test_format_amount_grouping_and_places():
    eur = Commodity(mnemonic="EUR", fraction=100)
    assert format_amount(Decimal("1234567.891"), eur) == "1,234,567.89"
    assert format_amount(Decimal("-0.5"), eur) == "-0.50"
    assert format_amount(Decimal("0"), None) == "0.00"
    assert (
        format_amount(Decimal("1234.5"), eur, decimal_point=",", thousands_sep=".")
        == "1.234,50"
    )
    assert format_amount(Decimal("1"), eur, show_symbol=True) == "EUR 1.00"


def test_format_amount_uncommon_fractions():
    assert format_amount(Decimal("3"), Commodity(mnemonic="JPY", fraction=1)) == "3"
    assert format_amount(Decimal("0.125"), Commodity(mnemonic="OCT", fraction=8)) == "0.125"


def test_format_date():
    assert format_date(date(2024, 12, 31)) == "2024-12-31"
    assert format_date(date(2024, 12, 31), "%d.%m.%Y") == "31.12.2024"
    assert format_date(None) == ""


def test_siblings_with_same_code_ordered_by_type_then_name(session):
    add_account(session, "Alpha income", account_type="INCOME")
    add_account(session, "Zeta bank", account_type="BANK")
    add_account(session, "Middle asset", account_type="ASSET")
    add_account(session, "Beta income", account_type="INCOME")
    add_account(session, "Custom", account_type="SOMETHING_ELSE")
    add_account(session, "Coded", code="0001", account_type="EQUITY")

    names = [a.name for a in descendants_sorted(session)]

    # empty codes sort before "0001"; unknown types come last among equal codes
    assert names == ["Zeta bank", "Middle asset", "Alpha income", "Beta income", "Custom", "Coded"]
