"""Export of ledger tables as a GDPdU data set for the German tax authority.

The module defines the following high level abstractions:

* :class:`ExportInfo` – delimiter, quoting policy, base file name and the
  shared failure flag of a single export.
* :class:`GdpduExporter` – writes the splits, transactions and accounts
  tables, one ``.csv`` file each.

Every field is followed by the delimiter, including the last one of a line,
and lines end in CRLF. Fields containing the delimiter, a quote or a newline
are wrapped in quotes with inner quotes doubled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import sys
from typing import Callable, List, Optional, Sequence, TextIO

from sqlalchemy.orm import Session

from .formatting import format_amount, format_date, split_amount
from .ledger import descendants_sorted, splits_by_date, transactions_by_date
from .models import Account, Split, Transaction

LOGGER = logging.getLogger(__name__)

# Text mode on Windows already turns "\n" into CRLF
EOL = "\n" if sys.platform == "win32" else "\r\n"

QUOTE = '"'
SEPARATOR = ";"

SPLITS_SUFFIX = "_splits.csv"
TRANSACTIONS_SUFFIX = "_transactions.csv"
ACCOUNTS_SUFFIX = "_accounts.csv"

SPLITS_COLUMNS = ("split_id", "transaction_id", "account_id", "amount", "action", "memo")
TRANSACTIONS_COLUMNS = (
    "transaction_id",
    "reversed_by_id",
    "date_posted",
    "date_entered",
    "number",
    "description",
    "doclink",
)
ACCOUNTS_COLUMNS = ("account_id", "parent_id", "code", "name", "full_name")


@dataclass
class ExportInfo:
    """State shared by the table writers of one export run.

    ``use_quotes`` means fields are already quoted by the caller, so the
    escaper only doubles inner quotes. The GDPdU export always runs with it
    off.
    """

    file_name: Path | str
    separator: str = SEPARATOR
    use_quotes: bool = False
    failed: bool = False

    def table_path(self, suffix: str) -> Path:
        return Path(f"{self.file_name}{suffix}")


def escape_field(info: ExportInfo, value: Optional[str]) -> str:
    """Double quotes in ``value`` and wrap it in quotes when it needs them."""

    escaped = (value or "").replace(QUOTE, QUOTE * 2)
    need_quote = info.separator in escaped or "\n" in escaped or QUOTE in escaped
    if need_quote and not info.use_quotes:
        return f"{QUOTE}{escaped}{QUOTE}"
    return escaped


def build_line(info: ExportInfo, fields: Sequence[str]) -> str:
    """Join already escaped ``fields``, each followed by the separator, and terminate the line."""

    return "".join(f"{value}{info.separator}" for value in fields) + EOL


def write_line_to_file(fh: TextIO, line: str) -> bool:
    LOGGER.debug("Line: %s", line.rstrip("\r\n"))
    try:
        written = fh.write(line)
    except (OSError, UnicodeError) as exc:
        LOGGER.error("Write failed: %s", exc)
        return False
    return written == len(line)


@dataclass
class GdpduExporter:
    """Writes the three GDPdU tables of a ledger.

    Parameters
    ----------
    session:
        Session of the ledger to read from. The ledger is never modified.
    info:
        Export state; ``info.failed`` tells the caller whether any table
        could not be written completely.
    date_format, account_separator, decimal_point, thousands_sep:
        Display conventions for dates, full account names and amounts.
    encoding:
        Output file encoding.
    """

    session: Session
    info: ExportInfo
    date_format: str = "%Y-%m-%d"
    account_separator: str = ":"
    decimal_point: str = "."
    thousands_sep: str = ","
    encoding: str = "utf-8"
    rows_written: dict[str, int] = field(default_factory=dict)

    # Row builders

    def split_row(self, split: Split) -> List[str]:
        txn = split.transaction
        account = split.account
        amount = format_amount(
            split_amount(split, txn.voided),
            account.commodity if account is not None else None,
            decimal_point=self.decimal_point,
            thousands_sep=self.thousands_sep,
            show_symbol=False,
        )
        return [
            split.guid,
            txn.guid,
            account.guid if account is not None else "",
            escape_field(self.info, amount),
            escape_field(self.info, split.action),
            escape_field(self.info, split.memo),
        ]

    def transaction_row(self, txn: Transaction) -> List[str]:
        return [
            txn.guid,
            txn.reversed_by.guid if txn.reversed_by is not None else "",
            format_date(txn.date_posted, self.date_format),
            format_date(txn.date_entered, self.date_format),
            escape_field(self.info, txn.num),
            escape_field(self.info, txn.description),
            escape_field(self.info, txn.doclink),
        ]

    def account_row(self, account: Account) -> List[str]:
        parent = account.parent
        parent_guid = "" if parent is None or parent.is_root else parent.guid
        return [
            account.guid,
            parent_guid,
            escape_field(self.info, account.code),
            escape_field(self.info, account.name),
            escape_field(self.info, account.full_name(self.account_separator)),
        ]

    # Table writers

    def _write_rows(self, fh: TextIO, table: str, rows) -> None:
        count = 0
        for row in rows:
            if not write_line_to_file(fh, build_line(self.info, row)):
                LOGGER.error(
                    "Write to %s failed; aborting %s table after %d rows",
                    getattr(fh, "name", "<stream>"),
                    table,
                    count,
                )
                self.info.failed = True
                break
            count += 1
        self.rows_written[table] = count

    def write_splits_table(self, fh: TextIO) -> None:
        # Splits without an account are blank placeholders
        rows = (
            self.split_row(split)
            for split in splits_by_date(self.session)
            if split.account is not None
        )
        self._write_rows(fh, "splits", rows)

    def write_transactions_table(self, fh: TextIO) -> None:
        rows = (self.transaction_row(txn) for txn in transactions_by_date(self.session))
        self._write_rows(fh, "transactions", rows)

    def write_accounts_table(self, fh: TextIO) -> None:
        rows = (self.account_row(account) for account in descendants_sorted(self.session))
        self._write_rows(fh, "accounts", rows)

    def _export_table(self, suffix: str, writer: Callable[[TextIO], None]) -> Path:
        path = self.info.table_path(suffix)
        LOGGER.debug("Enter: file name is %s", path)
        try:
            with open(path, "w", encoding=self.encoding) as fh:
                writer(fh)
        except (OSError, UnicodeError, LookupError) as exc:
            LOGGER.error("Could not write %s: %s", path, exc)
            self.info.failed = True
        LOGGER.debug("Leave: %s", path)
        return path

    def export(self) -> ExportInfo:
        """Write splits, transactions and accounts tables in that order.

        A failing table never stops the following ones; inspect
        ``info.failed`` afterwards.
        """

        self.info.failed = False
        self.info.separator = SEPARATOR
        self.info.use_quotes = False
        self.rows_written = {}

        paths = [
            self._export_table(SPLITS_SUFFIX, self.write_splits_table),
            self._export_table(TRANSACTIONS_SUFFIX, self.write_transactions_table),
            self._export_table(ACCOUNTS_SUFFIX, self.write_accounts_table),
        ]

        if self.info.failed:
            LOGGER.error("GDPdU export to %s failed", self.info.file_name)
        else:
            LOGGER.info(
                "Exported %d splits, %d transactions, %d accounts to %s",
                self.rows_written.get("splits", 0),
                self.rows_written.get("transactions", 0),
                self.rows_written.get("accounts", 0),
                ", ".join(str(p) for p in paths),
            )
        return self.info


def gdpdu_export(session: Session, file_name: Path | str, **options) -> ExportInfo:
    """Run a GDPdU export of ``session``'s ledger to ``<file_name>_*.csv``."""

    info = ExportInfo(file_name=file_name)
    return GdpduExporter(session=session, info=info, **options).export()


__all__ = [
    "ACCOUNTS_COLUMNS",
    "EOL",
    "ExportInfo",
    "GdpduExporter",
    "SPLITS_COLUMNS",
    "TRANSACTIONS_COLUMNS",
    "build_line",
    "escape_field",
    "gdpdu_export",
    "write_line_to_file",
]
