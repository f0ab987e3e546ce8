"""
Tests for the pending request table
"""

import pytest

from ndnping.errors import DuplicateKeyError, NotFoundError
from ndnping.pending import PendingTable


class TestPendingTable:
    """Test insert / lookup / remove semantics"""

    def test_insert_records_send_time(self, clock):
        table = PendingTable(clock=clock)
        entry = table.insert((b"5",), 5)

        assert entry.number == 5
        assert entry.send_time == clock.now
        assert table.lookup((b"5",)) == entry
        assert (b"5",) in table
        assert len(table) == 1

    def test_duplicate_insert_fails(self, clock):
        table = PendingTable(clock=clock)
        table.insert((b"5",), 5)

        with pytest.raises(DuplicateKeyError):
            table.insert((b"5",), 5)
        assert len(table) == 1

    def test_lookup_after_remove_fails(self, clock):
        table = PendingTable(clock=clock)
        table.insert((b"5",), 5)
        table.remove((b"5",))

        with pytest.raises(NotFoundError):
            table.lookup((b"5",))
        with pytest.raises(NotFoundError):
            table.remove((b"5",))
        assert len(table) == 0

    def test_pop_then_pop_again(self, clock):
        """A late duplicate upcall finds nothing and leaves the table intact"""
        table = PendingTable(clock=clock)
        table.insert((b"1",), 1)
        table.insert((b"2",), 2)

        assert table.pop((b"1",)).number == 1
        with pytest.raises(NotFoundError):
            table.pop((b"1",))
        assert table.numbers() == [2]

    def test_keys_with_identifier_component(self, clock):
        table = PendingTable(clock=clock)
        table.insert((b"7",), 7)
        table.insert((b"id", b"7"), 7)

        assert len(table) == 2
        table.remove((b"id", b"7"))
        assert table.lookup((b"7",)).number == 7

    def test_errors_are_key_errors(self, clock):
        table = PendingTable(clock=clock)
        with pytest.raises(KeyError):
            table.lookup((b"missing",))

    def test_insert_remove_sequence(self, clock):
        table = PendingTable(clock=clock)
        for n in range(50):
            table.insert((str(n).encode(),), n)
        for n in range(0, 50, 2):
            table.remove((str(n).encode(),))

        assert len(table) == 25
        assert sorted(table.numbers()) == list(range(1, 50, 2))
        for n in range(0, 50, 2):
            with pytest.raises(NotFoundError):
                table.lookup((str(n).encode(),))
