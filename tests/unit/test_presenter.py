"""Unit tests for reply formatting.

Tests:
  - base and community results show their source without a verification hint
  - machine results carry the verification hint and a /correct suggestion
  - teaching prompt names the word and the timeout
  - stats, recent list and numbers reference render their data
"""

from __future__ import annotations

from tulubot.services import presenter
from tulubot.services.engine import Tier, TranslationResult
from tulubot.services.presenter import BotStats
from tulubot.services.workflow.contribution import ContributionOutcome, ContributionStatus


class TestTranslationReply:
    def test_base_result(self) -> None:
        result = TranslationResult("hello", "namaskara", True, "base_dictionary", Tier.BASE_LEXICON)
        text = presenter.format_translation("Hello", result)

        assert "Tulu: namaskara" in text
        assert "Base dictionary" in text
        assert "machine translation" not in text.lower()

    def test_machine_result_needs_verification(self) -> None:
        result = TranslationResult(
            "zebra", "kudure", True, "api:google", Tier.API_FETCH, needs_verification=True
        )
        text = presenter.format_translation("zebra", result)

        assert "may not be authentic" in text
        assert "/correct zebra" in text


class TestPrompts:
    def test_teaching_prompt(self) -> None:
        text = presenter.format_teaching_prompt("Zebra", 10)
        assert '"Zebra"' in text
        assert "10 minutes" in text

    def test_saved(self) -> None:
        outcome = ContributionOutcome(ContributionStatus.SAVED, "zebra", "Zebra", translation="pattepili")
        text = presenter.format_contribution(outcome)
        assert "Learned" in text
        assert "pattepili" in text


class TestListings:
    def test_stats(self) -> None:
        stats = BotStats(
            base_words=200,
            taught_words=3,
            api_cached_words=5,
            recent=[("zebra", "pattepili")],
            store_backend="memory",
            uptime_seconds=3725,
        )
        text = presenter.format_stats(stats)

        assert "Total vocabulary: 203 words" in text
        assert "Uptime: 1h 2m" in text
        assert '"zebra" → "pattepili"' in text
        assert "memory" in text

    def test_recent_empty(self) -> None:
        assert "No community words" in presenter.format_recent([], 0)

    def test_recent_more(self) -> None:
        text = presenter.format_recent([("a", "b")], 4)
        assert "and 3 more" in text

    def test_numbers(self) -> None:
        text = presenter.format_numbers([("1", "onji"), ("2", "raddu")])
        assert "1 → onji" in text
