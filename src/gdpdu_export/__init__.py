"""GDPdU data set export for ledger accounts, transactions and splits."""

from .gdpdu_exporter import (
    ExportInfo,
    GdpduExporter,
    build_line,
    escape_field,
    gdpdu_export,
)
from .ledger import LedgerError

__all__ = [
    "ExportInfo",
    "GdpduExporter",
    "LedgerError",
    "build_line",
    "escape_field",
    "gdpdu_export",
]
