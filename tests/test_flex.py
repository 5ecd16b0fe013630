"""Tests for the FLEX line decoder and fragment store"""

from datetime import datetime

import pytest

from pager_relay.decoders.flex import FLEXDecoder
from pager_relay.decoders.fragments import FragmentStore
from pager_relay.errors import MalformedLineError

NOW = 1700000000


def flex_line(flag, text, address="001234567", content="ALN",
              stamp="2024-03-01 10:20:30"):
    return f"FLEX: {stamp} 1600/2/{flag}/A 10.120 [{address}] {content} {text}"


@pytest.fixture
def store():
    return FragmentStore()


@pytest.fixture
def decoder(store, timestamps):
    return FLEXDecoder(fragments=store, timestamps=timestamps)


class TestFragmentStore:

    def test_store_and_take(self, store):
        store.store("123", "HELLO ")
        assert "123" in store
        assert store.take("123") == "HELLO "
        assert "123" not in store
        assert store.take("123") is None

    def test_store_overwrites(self, store):
        store.store("123", "first")
        store.store("123", "second")
        assert len(store) == 1
        assert store.get("123") == "second"
        assert store.get_statistics()['fragments_overwritten'] == 1

    def test_clear(self, store):
        store.store("123", "x")
        store.clear("123")
        store.clear("456")
        assert store.addresses() == []


class TestAddress:

    def test_bracketed_address(self, decoder):
        assert decoder.decode(flex_line("K", "HI")).address == "001234567"

    def test_piped_address(self, decoder):
        line = "FLEX|2024-03-01 10:20:30|1600/2/K/A|10.120|001234567|ALN|Piped message"
        decoded = decoder.decode(line)
        assert decoded.address == "001234567"
        assert decoded.message == "Piped message"

    def test_empty_address_is_malformed(self, decoder):
        with pytest.raises(MalformedLineError):
            decoder.decode("FLEX: [] ALN text")


class TestTimestamp:

    def test_iso_timestamp(self, decoder):
        decoded = decoder.decode(flex_line("K", "HI"))
        assert decoded.datetime == int(datetime(2024, 3, 1, 10, 20, 30).timestamp())

    def test_long_timestamp(self, decoder):
        decoded = decoder.decode(flex_line("K", "HI", stamp="01 March 2024 10:20:30"))
        assert decoded.datetime == int(datetime(2024, 3, 1, 10, 20, 30).timestamp())

    def test_timestamp_disabled(self, store, timestamps):
        decoder = FLEXDecoder(fragments=store, timestamps=timestamps, use_timestamp=False)
        assert decoder.decode(flex_line("K", "HI")).datetime == NOW

    def test_invalid_timestamp_uses_clock(self, decoder):
        assert decoder.decode(flex_line("K", "HI", stamp="2024-02-31 10:20:30")).datetime == NOW


class TestMessages:

    @pytest.mark.parametrize("content", ["ALN", "GPN", "NUM"])
    def test_content_types(self, decoder, content):
        assert decoder.decode(flex_line("K", "12345", content=content)).message == "12345"

    def test_tone_only_has_no_message(self, decoder, store):
        decoded = decoder.decode(flex_line("F", "HELLO", content="TON"))
        assert decoded.message is None
        assert len(store) == 0

    def test_fragment_round_trip(self, decoder, store):
        first = decoder.decode(flex_line("F", "HELLO "))
        assert first.message is None
        assert store.get("001234567") == "HELLO "

        second = decoder.decode(flex_line("C", "WORLD"))
        assert second.message == "HELLO WORLD"
        assert "001234567" not in store

    def test_fragments_are_per_address(self, decoder, store):
        decoder.decode(flex_line("F", "ONE ", address="000000111"))
        decoder.decode(flex_line("F", "TWO ", address="000000222"))
        assert decoder.decode(flex_line("C", "B", address="000000222")).message == "TWO B"
        assert store.addresses() == ["000000111"]

    def test_later_fragment_replaces_earlier(self, decoder):
        decoder.decode(flex_line("F", "OLD "))
        decoder.decode(flex_line("F", "NEW "))
        assert decoder.decode(flex_line("C", "END")).message == "NEW END"

    def test_completion_without_fragment(self, decoder):
        assert decoder.decode(flex_line("C", "ORPHAN")).message == "ORPHAN"

    def test_complete_frame_leaves_store_alone(self, decoder, store):
        decoder.decode(flex_line("F", "PENDING "))
        assert decoder.decode(flex_line("K", "SINGLE")).message == "SINGLE"
        assert store.get("001234567") == "PENDING "

    def test_unknown_flag_is_complete(self, decoder):
        assert decoder.decode(flex_line("X", "OTHER")).message == "OTHER"

    def test_statistics(self, decoder):
        decoder.decode(flex_line("F", "A "))
        decoder.decode(flex_line("C", "B"))
        stats = decoder.get_statistics()
        assert stats['fragments_received'] == 1
        assert stats['messages_reassembled'] == 1
        assert stats['pending_fragments'] == 0
