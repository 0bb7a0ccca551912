"""Ledger queries and record maintenance backing the GDPdU export."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .formatting import DEFAULT_FRACTION
from .models import ROOT_ACCOUNT_TYPE, Account, Commodity, Split, Transaction

LOGGER = logging.getLogger(__name__)

ROOT_ACCOUNT_NAME = "Root Account"

# Sibling order of account types when codes are equal
ACCOUNT_TYPE_ORDER = (
    "BANK",
    "STOCK",
    "MUTUAL",
    "CURRENCY",
    "CASH",
    "ASSET",
    "RECEIVABLE",
    "CREDIT",
    "LIABILITY",
    "PAYABLE",
    "INCOME",
    "EXPENSE",
    "EQUITY",
    "TRADING",
)


def _sibling_key(account: Account) -> tuple:
    try:
        type_rank = ACCOUNT_TYPE_ORDER.index(account.account_type)
    except ValueError:
        type_rank = len(ACCOUNT_TYPE_ORDER)
    return (account.code or "", type_rank, account.name, account.id)


class LedgerError(ValueError):
    """Raised when a ledger operation cannot be applied."""


def get_root_account(session: Session) -> Account:
    """Return the invisible root account, creating it on first use."""
    root = session.scalar(
        select(Account).where(Account.parent_id.is_(None)).order_by(Account.id)
    )
    if root:
        return root
    root = Account(name=ROOT_ACCOUNT_NAME, account_type=ROOT_ACCOUNT_TYPE)
    session.add(root)
    session.flush()
    return root


def ensure_commodity(session: Session, mnemonic: str, fullname: str = "", fraction: int = DEFAULT_FRACTION) -> Commodity:
    commodity = session.scalar(select(Commodity).where(Commodity.mnemonic == mnemonic))
    if commodity:
        return commodity
    if fraction < 1:
        raise LedgerError(f"Commodity fraction must be positive. Got {fraction!r}.")
    commodity = Commodity(mnemonic=mnemonic, fullname=fullname, fraction=fraction)
    session.add(commodity)
    session.flush()
    return commodity


def add_account(
    session: Session,
    name: str,
    parent: Optional[Account] = None,
    code: Optional[str] = None,
    commodity: Optional[Commodity] = None,
    account_type: str = "ASSET",
) -> Account:
    """Create an account below ``parent``, or below the root when no parent is given.

    A child without an explicit commodity inherits its parent's.
    """
    if parent is None:
        parent = get_root_account(session)
    elif parent.id is None or session.get(Account, parent.id) is None:
        raise LedgerError(f"Parent account {parent.name!r} is not part of this ledger.")
    if commodity is None and not parent.is_root:
        commodity = parent.commodity

    account = Account(name=name, parent=parent, code=code, commodity=commodity, account_type=account_type)
    session.add(account)
    session.flush()
    return account


def add_transaction(
    session: Session,
    date_posted: date,
    description: str = "",
    num: Optional[str] = None,
    doclink: Optional[str] = None,
    date_entered: Optional[datetime] = None,
) -> Transaction:
    txn = Transaction(
        date_posted=date_posted,
        date_entered=date_entered or datetime.now(),
        description=description,
        num=num,
        doclink=doclink,
    )
    session.add(txn)
    session.flush()
    return txn


def _to_numerator(amount: Decimal | int | str, denom: int) -> int:
    value = Decimal(str(amount)) * denom
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def add_split(
    session: Session,
    txn: Transaction,
    account: Optional[Account],
    amount: Decimal | int | str,
    memo: Optional[str] = None,
    action: Optional[str] = None,
) -> Split:
    """Attach a split to ``txn``; the amount is stored at the account commodity's fraction.

    ``account`` may be ``None`` for a blank split that has not been assigned yet.
    """
    if txn.voided:
        raise LedgerError("Cannot add splits to a voided transaction.")
    denom = DEFAULT_FRACTION
    if account is not None and account.commodity is not None:
        denom = account.commodity.fraction

    split = Split(
        transaction=txn,
        account=account,
        amount_num=_to_numerator(amount, denom),
        amount_denom=denom,
        memo=memo,
        action=action,
    )
    session.add(split)
    session.flush()
    return split


def void_transaction(session: Session, txn: Transaction, reason: str) -> Transaction:
    """Mark ``txn`` void: live amounts drop to zero and the former amounts are kept."""
    if txn.voided:
        raise LedgerError(f"Transaction {txn.guid} is already void.")
    for split in txn.splits:
        split.void_former_num = split.amount_num
        split.amount_num = 0
    txn.voided = True
    txn.void_reason = reason
    session.flush()
    LOGGER.info("Voided transaction %s: %s", txn.guid, reason)
    return txn


def reverse_transaction(session: Session, txn: Transaction, date_posted: Optional[date] = None) -> Transaction:
    """Post a transaction that cancels ``txn`` and link it as ``txn.reversed_by``."""
    if txn.reversed_by is not None:
        raise LedgerError(f"Transaction {txn.guid} has already been reversed.")
    reversal = Transaction(
        date_posted=date_posted or date.today(),
        date_entered=datetime.now(),
        description=txn.description,
        num=txn.num,
    )
    for split in txn.splits:
        reversal.splits.append(
            Split(
                account=split.account,
                amount_num=-split.amount_num,
                amount_denom=split.amount_denom,
                memo=split.memo,
                action=split.action,
            )
        )
    session.add(reversal)
    txn.reversed_by = reversal
    session.flush()
    LOGGER.info("Reversed transaction %s with %s", txn.guid, reversal.guid)
    return reversal


def splits_by_date(session: Session) -> list[Split]:
    """All splits ordered by their transaction's posted date, ties in insertion order."""
    stmt = (
        select(Split)
        .join(Split.transaction)
        .order_by(Transaction.date_posted, Split.id)
    )
    return list(session.scalars(stmt))


def transactions_by_date(session: Session) -> list[Transaction]:
    stmt = select(Transaction).order_by(Transaction.date_posted, Transaction.id)
    return list(session.scalars(stmt))


def descendants_sorted(session: Session, root: Optional[Account] = None) -> list[Account]:
    """Every descendant of ``root`` in depth-first order, siblings ordered by code, type, then name."""
    if root is None:
        root = get_root_account(session)

    children: dict[int, list[Account]] = defaultdict(list)
    for account in session.scalars(select(Account).where(Account.parent_id.is_not(None))):
        children[account.parent_id].append(account)

    result: list[Account] = []

    def _walk(parent_id: int) -> None:
        for child in sorted(children[parent_id], key=_sibling_key):
            result.append(child)
            _walk(child.id)

    _walk(root.id)
    return result
