from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from .config import get_settings
from .db import Base, make_engine
from .services import export_files, export_ledger


def setup_logging(logs_dir: Path, verbose: bool = False) -> None:
    logs_dir.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    fmt = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = RotatingFileHandler(logs_dir / "gdpdu_export.log", maxBytes=512_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(fmt)
    logger.addHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    logger.addHandler(console)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Export the ledger as a GDPdU data set (three CSV files)")
    parser.add_argument(
        "base_path",
        help="Base path of the output; _splits.csv, _transactions.csv and _accounts.csv are appended",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL of the ledger database (default: GDPDU_DATABASE_URL or data/ledger.db)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every written line")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.logs_dir, verbose=args.verbose)

    engine = make_engine(args.database_url or settings.database_url)
    try:
        Base.metadata.create_all(engine)
        with Session(engine) as session:
            info = export_ledger(session, args.base_path, settings=settings)
    except ValueError as e:
        logging.error("%s", e)
        return 2
    except Exception as e:  # noqa: BLE001
        logging.exception("Unexpected error: %s", e)
        return 1
    finally:
        engine.dispose()

    if info.failed:
        logging.error("GDPdU export failed; check the log for the affected files")
        return 1
    for path in export_files(info.file_name):
        logging.info("CSV saved: %s", path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
