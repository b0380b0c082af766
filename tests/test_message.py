"""Tests for writing and chaining NDEF messages."""

import pytest

from st25_ndef.errors import DeviceBusyError, OutOfSpaceError, RecordNotFoundError
from st25_ndef.message import EMPTY_MESSAGE, append_record, clear_message, write_message
from st25_ndef.parser import iter_records
from st25_ndef.payloads import TextRecord, UriRecord, WifiCredential, encode_record
from st25_ndef.tlv import read_message_tlv

BASE = 4


class TestSingleRecord:
    """Test starting and finishing a message in one call."""

    def test_uri_message_bytes(self, store, transport):
        cursor = append_record(store, BASE, UriRecord("sparkfun.com", 0x02))

        expected = b"\x03\x11\xd1\x01\x0d\x55\x02sparkfun.com\xfe"
        assert transport.image[BASE : BASE + len(expected)] == expected
        assert cursor == BASE + len(expected) - 1
        assert transport.image[cursor] == 0xFE

    def test_explicit_start_address(self, store, transport):
        append_record(store, BASE, UriRecord("a.b", 0x01), address=0x40)
        assert transport.image[0x40] == 0x03
        assert transport.image[BASE] == 0x00

    def test_open_message_has_no_terminator(self, store, transport):
        cursor = append_record(store, BASE, TextRecord("a"), me=False)
        assert cursor == BASE + 2 + 8
        assert transport.image[cursor] == 0x00

    def test_does_not_fit(self, make_store):
        transport, store = make_store(32)

        with pytest.raises(OutOfSpaceError):
            append_record(store, BASE, TextRecord("x" * 40))
        assert transport.write_calls == []


class TestAppend:
    """Test building a message across calls."""

    def test_chain_three_records(self, store, transport):
        first = UriRecord("sparkfun.com", 0x02)
        second = TextRecord("hello")
        third = WifiCredential("guestNetwork", "guestPassword123")

        cursor = append_record(store, BASE, first, mb=True, me=False)
        cursor = append_record(store, BASE, second, mb=False, me=False, address=cursor)
        cursor = append_record(store, BASE, third, mb=False, me=True, address=cursor)

        value = (
            encode_record(first, mb=True, me=False)
            + encode_record(second, mb=False, me=False)
            + encode_record(third, mb=False, me=True)
        )
        msg = read_message_tlv(store, BASE)
        assert msg.length.value == len(value)
        assert transport.image[msg.value_address : msg.end_address] == value
        assert transport.image[msg.end_address] == 0xFE
        assert cursor == msg.end_address

    def test_cursor_defaults_to_message_end(self, store, transport):
        cursor = append_record(store, BASE, TextRecord("one"), me=False)
        assert append_record(store, BASE, TextRecord("two"), mb=False) == cursor + 10

    def test_matches_single_transfer(self, store, transport, make_store):
        records = [UriRecord("x.io", 0x04), TextRecord("y" * 200), TextRecord("z" * 100, "fr")]

        cursor = append_record(store, BASE, records[0], me=False)
        cursor = append_record(store, BASE, records[1], mb=False, me=False, address=cursor)
        cursor = append_record(store, BASE, records[2], mb=False, me=True, address=cursor)
        chained = transport.image

        other, other_store = make_store()
        end = write_message(other_store, BASE, records)

        assert end == cursor
        assert chained[: end + 1] == other.image[: end + 1]

    def test_widen_shifts_existing_records(self, store, transport):
        first = TextRecord("a" * 200)
        second = TextRecord("b" * 100)
        first_bytes = encode_record(first, mb=True, me=False)
        assert len(first_bytes) == 207

        cursor = append_record(store, BASE, first, me=False)
        assert cursor == BASE + 2 + 207

        cursor = append_record(store, BASE, second, mb=False, address=cursor)

        total = 207 + 107
        assert transport.image[BASE : BASE + 4] == b"\x03\xff" + total.to_bytes(2, "big")
        assert transport.image[BASE + 4 : BASE + 4 + 207] == first_bytes
        assert transport.image[BASE + 4 + 207 : BASE + 4 + total] == encode_record(
            second, mb=False, me=True
        )
        assert transport.image[BASE + 4 + total] == 0xFE
        assert cursor == BASE + 4 + total

    def test_append_after_widen_in_place(self, store, transport):
        cursor = append_record(store, BASE, TextRecord("a" * 250), me=False)
        cursor = append_record(store, BASE, TextRecord("b"), mb=False, me=False, address=cursor)
        before = transport.image[BASE + 4 : cursor]

        cursor = append_record(store, BASE, TextRecord("c"), mb=False, address=cursor)

        msg = read_message_tlv(store, BASE)
        assert msg.length.extended
        assert transport.image[BASE + 4 : BASE + 4 + len(before)] == before
        assert cursor == msg.end_address

    def test_append_after_finished_message_moves_me(self, store, transport, make_store):
        records = [TextRecord("one"), TextRecord("two")]
        append_record(store, BASE, records[0])
        end = append_record(store, BASE, records[1], mb=False)

        entries = list(iter_records(store, BASE))
        assert [e.header.me for e in entries] == [False, True]
        assert [e.header.mb for e in entries] == [True, False]

        other, other_store = make_store()
        assert write_message(other_store, BASE, records) == end
        assert transport.image[: end + 1] == other.image[: end + 1]

    def test_append_after_finished_message_across_widening(self, store, transport):
        first = TextRecord("a" * 200)
        append_record(store, BASE, first)
        append_record(store, BASE, TextRecord("b" * 100), mb=False)

        assert transport.image[BASE + 1] == 0xFF
        assert transport.image[BASE + 4 : BASE + 4 + 207] == encode_record(first, mb=True, me=False)

    def test_no_message_to_append_to(self, store):
        store.write(BASE, b"\xfe")
        with pytest.raises(RecordNotFoundError):
            append_record(store, BASE, TextRecord("x"), mb=False)

    def test_append_does_not_fit(self, make_store):
        transport, store = make_store(40)
        cursor = append_record(store, BASE, TextRecord("x" * 10), me=False)
        transport.reset_calls()

        with pytest.raises(OutOfSpaceError):
            append_record(store, BASE, TextRecord("y" * 20), mb=False, address=cursor)
        assert transport.write_calls == []

    def test_failed_record_write_keeps_grown_length(self, store, transport):
        """A record write that fails after the length grew is not rolled back."""
        cursor = append_record(store, BASE, TextRecord("one"), me=False)
        old_length = read_message_tlv(store, BASE).length.value
        transport.dead_write_addresses = {cursor}

        with pytest.raises(DeviceBusyError):
            append_record(store, BASE, TextRecord("two"), mb=False, address=cursor)

        assert read_message_tlv(store, BASE).length.value == old_length + 10


class TestWholeMessage:
    """Test single-transfer writes and clearing."""

    def test_empty_record_list(self, store, transport):
        assert write_message(store, BASE, []) == BASE + 2
        assert transport.image[BASE : BASE + 3] == EMPTY_MESSAGE

    def test_write_message_single_transfer_flags(self, store, transport):
        write_message(store, BASE, [TextRecord("a"), TextRecord("b"), TextRecord("c")])
        value_address = BASE + 2
        assert transport.image[value_address] == 0x91
        assert transport.image[value_address + 8] == 0x11
        assert transport.image[value_address + 16] == 0x51

    def test_clear(self, store, transport):
        append_record(store, BASE, UriRecord("sparkfun.com", 0x02))
        assert clear_message(store, BASE) == BASE + 2
        assert transport.image[BASE : BASE + 3] == b"\x03\x00\xfe"
