import logging
from datetime import date

import pytest
from sqlalchemy.orm import Session

from gdpdu_export import cli
from gdpdu_export.db import Base, make_engine
from gdpdu_export.ledger import add_account, add_split, add_transaction


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite:///{(tmp_path / 'ledger.db').as_posix()}"
    engine = make_engine(url)
    Base.metadata.create_all(engine)
    with Session(engine) as s:
        cash = add_account(s, "Cash", code="1000")
        txn = add_transaction(s, date(2024, 8, 1), description="Coffee")
        add_split(s, txn, cash, "-3.20", action="Buy")
        s.commit()
    engine.dispose()
    return url


def test_main_exports_ledger(tmp_path, database_url):
    rc = cli.main([str(tmp_path / "audit"), "--database-url", database_url])
    assert rc == 0
    splits = (tmp_path / "audit_splits.csv").read_bytes()
    assert splits.endswith(b";-3.20;Buy;;\r\n")
    accounts = (tmp_path / "audit_accounts.csv").read_bytes()
    assert accounts.endswith(b";;1000;Cash;Cash;\r\n")


def test_main_reports_failure(tmp_path, database_url):
    rc = cli.main([str(tmp_path / "missing" / "audit"), "--database-url", database_url])
    assert rc == 1


def test_main_rejects_blank_base_path(database_url):
    assert cli.main(["   ", "--database-url", database_url]) == 2


def test_main_reports_unencodable_ledger_as_failure(tmp_path, database_url, monkeypatch):
    engine = make_engine(database_url)
    with Session(engine) as s:
        euro = add_account(s, "Kasse €")
        txn = add_transaction(s, date(2024, 8, 2), description="Tee")
        add_split(s, txn, euro, "2")
        s.commit()
    engine.dispose()
    monkeypatch.setenv("GDPDU_ENCODING", "latin-1")

    rc = cli.main([str(tmp_path / "audit"), "--database-url", database_url])

    assert rc == 1
    assert (tmp_path / "audit_transactions.csv").exists()
