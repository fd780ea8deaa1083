"""Unit tests for the base lexicon.

Tests:
  - normalize lowercases, trims and collapses whitespace
  - seeded keys resolve (hello → namaskara, digits and words for numbers)
  - the mapping cannot be mutated after construction
  - numbers_reference returns digit keys in numeric order
  - seed_store copies every entry once and skips when already seeded
"""

from __future__ import annotations

import pytest

from tulubot.services.lexicon import BaseLexicon, Category, normalize
from tulubot.services.store.base import Table
from tulubot.services.store.memory import InMemoryTranslationStore


class TestNormalize:
    def test_lowercases_and_trims(self) -> None:
        assert normalize("  Hello ") == "hello"

    def test_collapses_internal_whitespace(self) -> None:
        assert normalize("Good \t  Morning") == "good morning"

    def test_empty_string(self) -> None:
        assert normalize("   ") == ""


class TestLookup:
    def test_hello(self, lexicon: BaseLexicon) -> None:
        assert lexicon.lookup("hello") == "namaskara"

    def test_number_word_and_digit_agree(self, lexicon: BaseLexicon) -> None:
        assert lexicon.lookup("five") == "aidu"
        assert lexicon.lookup("5") == "aidu"

    def test_multi_word_phrase(self, lexicon: BaseLexicon) -> None:
        assert lexicon.lookup("how are you") == "yenkulu ullar"

    def test_unknown_returns_none(self, lexicon: BaseLexicon) -> None:
        assert lexicon.lookup("zebra crossing") is None

    def test_lookup_expects_normalized_key(self, lexicon: BaseLexicon) -> None:
        assert lexicon.lookup("Hello") is None
        assert lexicon.lookup(normalize("Hello")) == "namaskara"

    def test_entry_metadata(self, lexicon: BaseLexicon) -> None:
        entry = lexicon.get_entry("mother")
        assert entry is not None
        assert entry.category is Category.FAMILY
        assert entry.verified is True


class TestImmutability:
    def test_entries_cannot_be_assigned(self, lexicon: BaseLexicon) -> None:
        with pytest.raises(TypeError):
            lexicon._entries["hello"] = None  # type: ignore[index]

    def test_custom_seed_is_normalized(self) -> None:
        lex = BaseLexicon({Category.GREETINGS: {"  Good   Day ": "olle dina"}})
        assert len(lex) == 1
        assert "good day" in lex


class TestNumbersReference:
    def test_sorted_numerically(self, lexicon: BaseLexicon) -> None:
        ref = lexicon.numbers_reference()
        digits = [int(d) for d, _ in ref]
        assert digits == sorted(digits)
        assert ref[0] == ("0", "pundu")
        assert ("1000", "saayira") in ref

    def test_only_digit_keys(self, lexicon: BaseLexicon) -> None:
        assert all(d.isdigit() for d, _ in lexicon.numbers_reference())


class TestSeedStore:
    @pytest.mark.asyncio
    async def test_seeds_every_entry(self, lexicon: BaseLexicon) -> None:
        store = InMemoryTranslationStore()
        written = await lexicon.seed_store(store)

        assert written == len(lexicon)
        assert await store.count(Table.BASE) == len(lexicon)
        row = await store.get(Table.BASE, "hello")
        assert row is not None
        assert row["tulu"] == "namaskara"
        assert row["category"] == "greetings"
        assert row["verified"] is True

    @pytest.mark.asyncio
    async def test_second_seed_is_skipped(self, lexicon: BaseLexicon) -> None:
        store = InMemoryTranslationStore()
        await lexicon.seed_store(store)
        assert await lexicon.seed_store(store) == 0
