import os
import tempfile
from datetime import date, datetime

import pytest

_TMP = tempfile.mkdtemp(prefix="gdpdu-tests-")
os.environ["GDPDU_DATABASE_URL"] = "sqlite://"
os.environ["GDPDU_OUTPUT_DIR"] = os.path.join(_TMP, "output")
os.environ["GDPDU_LOGS_DIR"] = os.path.join(_TMP, "logs")

from sqlalchemy.orm import Session  # noqa: E402

from gdpdu_export.db import Base, make_engine  # noqa: E402
from gdpdu_export.ledger import add_account, add_split, add_transaction  # noqa: E402


@pytest.fixture
def session():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()


@pytest.fixture
def deposit_ledger(session):
    """One account, one transaction and one split as in a minimal audit export."""
    checking = add_account(session, "Checking")
    txn = add_transaction(
        session,
        date_posted=date(2024, 1, 1),
        description="Deposit; funds",
        date_entered=datetime(2024, 1, 2, 9, 30),
    )
    split = add_split(session, txn, checking, "100.00", memo='He said "hi"')
    return {"account": checking, "transaction": txn, "split": split}
