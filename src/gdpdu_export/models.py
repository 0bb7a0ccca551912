from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


ROOT_ACCOUNT_TYPE = "ROOT"


def new_guid() -> str:
    """Return a GUID rendered as 32 lowercase hex digits."""
    return uuid.uuid4().hex


class Commodity(Base):
    __tablename__ = "commodities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guid: Mapped[str] = mapped_column(String(32), unique=True, default=new_guid)
    mnemonic: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    fullname: Mapped[str] = mapped_column(String(128), default="")
    fraction: Mapped[int] = mapped_column(Integer, default=100)  # smallest unit, e.g. 100 for cents


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guid: Mapped[str] = mapped_column(String(32), unique=True, index=True, default=new_guid)
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"), default=None, index=True)
    commodity_id: Mapped[Optional[int]] = mapped_column(ForeignKey("commodities.id"), default=None)
    name: Mapped[str] = mapped_column(String(256))
    code: Mapped[Optional[str]] = mapped_column(String(64), default=None)
    account_type: Mapped[str] = mapped_column(String(32), default="ASSET")

    parent: Mapped[Optional[Account]] = relationship(back_populates="children", remote_side="Account.id")  # type: ignore[name-defined]
    children: Mapped[list[Account]] = relationship(back_populates="parent")  # type: ignore[name-defined]
    commodity: Mapped[Optional[Commodity]] = relationship()
    splits: Mapped[list[Split]] = relationship(back_populates="account")  # type: ignore[name-defined]

    @property
    def is_root(self) -> bool:
        return self.parent_id is None and self.parent is None

    def full_name(self, separator: str = ":") -> str:
        """Names from the top-level ancestor down to this account; the root is left out."""
        if self.is_root:
            return ""
        names = []
        node: Optional[Account] = self
        while node is not None and not node.is_root:
            names.append(node.name)
            node = node.parent
        return separator.join(reversed(names))


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guid: Mapped[str] = mapped_column(String(32), unique=True, index=True, default=new_guid)
    reversed_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("transactions.id"), default=None)
    date_posted: Mapped[date] = mapped_column(Date, index=True)
    date_entered: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    num: Mapped[Optional[str]] = mapped_column(String(64), default=None)
    description: Mapped[Optional[str]] = mapped_column(Text, default=None)
    doclink: Mapped[Optional[str]] = mapped_column(Text, default=None)
    voided: Mapped[bool] = mapped_column(Boolean, default=False)
    void_reason: Mapped[Optional[str]] = mapped_column(Text, default=None)

    splits: Mapped[list[Split]] = relationship(back_populates="transaction", cascade="all,delete-orphan")  # type: ignore[name-defined]
    reversed_by: Mapped[Optional[Transaction]] = relationship(remote_side="Transaction.id")  # type: ignore[name-defined]


class Split(Base):
    __tablename__ = "splits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guid: Mapped[str] = mapped_column(String(32), unique=True, index=True, default=new_guid)
    transaction_id: Mapped[int] = mapped_column(ForeignKey("transactions.id", ondelete="CASCADE"), index=True)
    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"), default=None, index=True)
    # Amounts are numerators over amount_denom
    amount_num: Mapped[int] = mapped_column(BigInteger, default=0)
    amount_denom: Mapped[int] = mapped_column(Integer, default=100)
    void_former_num: Mapped[int] = mapped_column(BigInteger, default=0)
    action: Mapped[Optional[str]] = mapped_column(String(64), default=None)
    memo: Mapped[Optional[str]] = mapped_column(Text, default=None)

    transaction: Mapped[Transaction] = relationship(back_populates="splits")
    account: Mapped[Optional[Account]] = relationship(back_populates="splits")

    @property
    def amount(self) -> Decimal:
        return Decimal(self.amount_num) / Decimal(self.amount_denom)

    @property
    def void_former_amount(self) -> Decimal:
        return Decimal(self.void_former_num) / Decimal(self.amount_denom)
