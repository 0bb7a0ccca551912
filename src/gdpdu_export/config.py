from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class Settings:
    base_dir: Path
    data_dir: Path
    output_dir: Path
    logs_dir: Path
    database_url: str
    date_format: str = "%Y-%m-%d"
    account_separator: str = ":"
    decimal_point: str = "."
    thousands_sep: str = ","
    encoding: str = "utf-8"


def get_settings() -> Settings:
    base = Path(__file__).resolve().parents[2]
    data_dir = base / "data"
    output_dir = Path(os.getenv("GDPDU_OUTPUT_DIR") or base / "output")
    logs_dir = Path(os.getenv("GDPDU_LOGS_DIR") or base / "logs")

    db_url = os.getenv("GDPDU_DATABASE_URL")
    if not db_url:
        # Default to SQLite in data dir
        data_dir.mkdir(parents=True, exist_ok=True)
        db_url = f"sqlite:///{(data_dir / 'ledger.db').as_posix()}"

    return Settings(
        base_dir=base,
        data_dir=data_dir,
        output_dir=output_dir,
        logs_dir=logs_dir,
        database_url=db_url,
        date_format=os.getenv("GDPDU_DATE_FORMAT", "%Y-%m-%d"),
        account_separator=os.getenv("GDPDU_ACCOUNT_SEPARATOR", ":"),
        decimal_point=os.getenv("GDPDU_DECIMAL_POINT", "."),
        thousands_sep=os.getenv("GDPDU_THOUSANDS_SEP", ","),
        encoding=os.getenv("GDPDU_ENCODING", "utf-8"),
    )
