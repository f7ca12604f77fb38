"""
Tests for the append-only transaction log
"""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

from pgbank.errors import InvalidArgument, NotFound
from pgbank.transaction_log import (
    Transaction, TransactionLog, TransactionStatus, TransactionType
)


def make_transfer(txn_id, from_id="A", to_id="B", status=TransactionStatus.SETTLED, when=None):
    return Transaction(
        id=txn_id,
        transaction_type=TransactionType.TRANSFER,
        from_account_id=from_id,
        to_account_id=to_id,
        amount=100,
        currency="USD",
        status=status,
        created_at=when or datetime.now(timezone.utc),
    )


@pytest.fixture
def log():
    return TransactionLog()


class TestAppend:

    def test_sequence_increases_monotonically(self, log):
        """Sequence numbers start at 1 and increase by one per append"""
        stored = [log.append(make_transfer(f"T{i}")) for i in range(5)]
        assert [t.sequence for t in stored] == [1, 2, 3, 4, 5]
        assert len(log) == 5

    def test_sequence_breaks_timestamp_ties(self, log):
        """Records with identical timestamps keep their append order"""
        same_time = datetime(2024, 1, 1, tzinfo=timezone.utc)
        log.append(make_transfer("second-created", when=same_time))
        log.append(make_transfer("first-created", when=same_time))

        assert [t.id for t in log.query()] == ["second-created", "first-created"]

    def test_append_returns_copy_with_sequence(self, log):
        original = make_transfer("T1")
        stored = log.append(original)

        assert original.sequence is None
        assert stored.sequence == 1
        assert stored.id == original.id

    def test_queued_transactions_rejected(self, log):
        """Only terminal records are ever stored"""
        with pytest.raises(InvalidArgument, match="queued"):
            log.append(make_transfer("T1", status=TransactionStatus.QUEUED))
        assert len(log) == 0

    def test_duplicate_id_rejected(self, log):
        log.append(make_transfer("T1"))
        with pytest.raises(InvalidArgument, match="already logged"):
            log.append(make_transfer("T1", status=TransactionStatus.FAILED))

    def test_records_are_immutable(self, log):
        stored = log.append(make_transfer("T1"))
        with pytest.raises(FrozenInstanceError):
            stored.status = TransactionStatus.FAILED

    def test_reserved_id_cannot_be_reserved_again(self, log):
        log.reserve("T1")
        with pytest.raises(InvalidArgument, match="already in use"):
            log.reserve("T1")

        log.release("T1")
        log.reserve("T1")

    def test_logged_id_cannot_be_reserved(self, log):
        log.append(make_transfer("T1"))
        with pytest.raises(InvalidArgument, match="already in use"):
            log.reserve("T1")

    def test_append_consumes_reservation(self, log):
        log.reserve("T1")
        stored = log.append(make_transfer("T1"))
        log.release("T1")

        assert log.get("T1") == stored
        with pytest.raises(InvalidArgument):
            log.reserve("T1")


class TestQuery:

    def test_query_filters_either_side(self, log):
        log.append(make_transfer("T1", "A", "B"))
        log.append(make_transfer("T2", "B", "C"))
        log.append(make_transfer("T3", "C", "A"))
        log.append(make_transfer("T4", "C", "D"))

        assert [t.id for t in log.query("A")] == ["T1", "T3"]
        assert [t.id for t in log.query("B")] == ["T1", "T2"]
        assert [t.id for t in log.query("Z")] == []
        assert len(log.query()) == 4

    def test_get(self, log):
        log.append(make_transfer("T1"))
        assert log.get("T1").sequence == 1
        with pytest.raises(NotFound):
            log.get("missing")

    def test_to_dict(self, log):
        stored = log.append(make_transfer("T1"))
        data = stored.to_dict()

        assert data["type"] == "transfer"
        assert data["status"] == "settled"
        assert data["sequence"] == 1
        assert data["settled_at"] is None
        assert data["amount"] == 100
