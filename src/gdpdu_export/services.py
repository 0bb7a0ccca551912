from __future__ import annotations

from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .db import Base, engine
from .gdpdu_exporter import (
    ACCOUNTS_SUFFIX,
    SPLITS_SUFFIX,
    TRANSACTIONS_SUFFIX,
    ExportInfo,
    gdpdu_export,
)


def init_db() -> None:
    """Create the ledger tables if they do not exist yet."""
    Base.metadata.create_all(engine)


def export_files(base_path: Path | str) -> list[Path]:
    """Paths of the three files an export to ``base_path`` produces, in write order."""
    return [Path(f"{base_path}{suffix}") for suffix in (SPLITS_SUFFIX, TRANSACTIONS_SUFFIX, ACCOUNTS_SUFFIX)]


def export_ledger(
    session: Session,
    base_path: Path | str,
    settings: Optional[Settings] = None,
) -> ExportInfo:
    """Export the ledger as a GDPdU data set using the configured display conventions.

    Relative base paths are resolved against the configured output directory,
    which is created when missing.
    """
    if not str(base_path).strip():
        raise ValueError("Export base path must not be empty")

    settings = settings or get_settings()
    base = Path(base_path)
    if not base.is_absolute():
        settings.output_dir.mkdir(parents=True, exist_ok=True)
        base = settings.output_dir / base

    return gdpdu_export(
        session,
        base,
        date_format=settings.date_format,
        account_separator=settings.account_separator,
        decimal_point=settings.decimal_point,
        thousands_sep=settings.thousands_sep,
        encoding=settings.encoding,
    )
