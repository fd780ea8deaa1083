"""Reply text for every user-visible outcome.

Pure functions: no I/O and no state. The transport decides how the
Markdown-style ``**bold**`` markers are rendered.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from tulubot.services.engine import Tier, TranslationResult
from tulubot.services.workflow.contribution import (
    ContributionOutcome,
    ContributionStatus,
    CorrectionOutcome,
    CorrectionStatus,
)
from tulubot.services.workflow.state import UserState

GENERIC_APOLOGY = "Sorry, something went wrong. Please try again in a moment."

_SOURCE_LABELS = {
    Tier.BASE_LEXICON: "Base dictionary",
    Tier.TAUGHT: "Community taught",
    Tier.API_CACHE: "Machine translation (cached)",
    Tier.API_FETCH: "Machine translation",
}


@dataclass
class BotStats:
    base_words: int
    taught_words: int
    api_cached_words: int
    recent: list[tuple[str, str]]
    store_backend: str
    uptime_seconds: float
    pending_states: int = 0

    @property
    def total_words(self) -> int:
        return self.base_words + self.taught_words


def format_translation(original_text: str, result: TranslationResult) -> str:
    """Format a found result. Machine results carry a verification hint."""
    lines = [
        "**Translation**",
        "",
        f"English: {original_text.strip()}",
        f"Tulu: {result.translation}",
        f"Source: {_SOURCE_LABELS.get(result.tier, result.source)}",
    ]
    if result.needs_verification:
        lines += [
            "",
            "This is a machine translation and may not be authentic Tulu.",
            f"Know better? /correct {result.english}",
        ]
    elif result.tier is Tier.TAUGHT:
        lines += ["", f"Want to improve it? /correct {result.english}"]
    return "\n".join(lines)


def format_teaching_prompt(original_text: str, timeout_minutes: int) -> str:
    return "\n".join(
        [
            f'**"{original_text.strip()}" is not in the dictionary yet**',
            "",
            "Reply with the Tulu translation (in Roman letters) to teach me.",
            "Use /skip to ask something else.",
            f"This request expires in {timeout_minutes} minutes.",
        ]
    )


def format_contribution(outcome: ContributionOutcome) -> str:
    if outcome.status is ContributionStatus.SAVED:
        return "\n".join(
            [
                "**Learned, thank you!**",
                "",
                f"English: {outcome.original_text}",
                f"Tulu: {outcome.translation}",
                "",
                f'Ask me "{outcome.original_text}" again to see it.',
            ]
        )
    if outcome.status is ContributionStatus.CORRECTED:
        lines = ["**Correction saved**", "", f"English: {outcome.original_text}"]
        if outcome.old_translation:
            lines.append(f"Old Tulu: {outcome.old_translation}")
        lines.append(f"New Tulu: {outcome.translation}")
        return "\n".join(lines)
    if outcome.status is ContributionStatus.INVALID:
        return f"{outcome.error}. Please send the Tulu translation again, or /skip."
    if outcome.status is ContributionStatus.REFUSED:
        return f"{outcome.error}."
    return "\n".join(
        [
            f'**Could not save "{outcome.original_text}"**',
            "",
            f'Please try again: ask me "{outcome.original_text}" and I will ask you for it.',
        ]
    )


def format_correction(outcome: CorrectionOutcome) -> str:
    if outcome.status is CorrectionStatus.STARTED:
        return "\n".join(
            [
                "**Correction mode**",
                "",
                f"English: {outcome.english}",
                f"Current Tulu: {outcome.current_translation}",
                "",
                "Send the correct Tulu translation now, or /skip to cancel.",
            ]
        )
    if outcome.status is CorrectionStatus.BASE_IMMUTABLE:
        return "\n".join(
            [
                "**Cannot correct a base dictionary word**",
                "",
                f"English: {outcome.english}",
                f"Tulu: {outcome.current_translation}",
                "",
                "Built-in words are verified and cannot be edited.",
            ]
        )
    return "\n".join(
        [
            f'**"{outcome.english}" was not found**',
            "",
            f'Ask me "{outcome.english}" and I will learn it from you, or check /learned.',
        ]
    )


def format_correct_usage() -> str:
    return "Usage: /correct <english word>"


def format_forget(word: str, deleted: bool) -> str:
    if deleted:
        return f'Removed "{word}" from the community dictionary.'
    return f'"{word}" is not a community word.'


def format_cancel(cleared: bool) -> str:
    if cleared:
        return "Cancelled. Ask me any English word or number."
    return "Nothing to cancel. Ask me any English word or number."


def format_invalid_input() -> str:
    return "\n".join(
        [
            "**Please send English text or numbers only**",
            "",
            "For example: hello, thank you, 5, how are you",
        ]
    )


def format_expired(state: UserState) -> str:
    return (
        f'The teaching request for "{state.original_text}" expired. '
        "Ask me any new word now."
    )


def format_recent(entries: Sequence[tuple[str, str]], total: int) -> str:
    if not entries:
        return "\n".join(
            [
                "**No community words yet**",
                "",
                "Ask me any word. If I don't know it, you can teach me.",
            ]
        )
    lines = [f"**Community dictionary** ({total} words)", ""]
    lines += [f'• "{english}" → "{tulu}"' for english, tulu in entries]
    if total > len(entries):
        lines += ["", f"...and {total - len(entries)} more"]
    return "\n".join(lines)


def format_stats(stats: BotStats) -> str:
    hours, rest = divmod(int(stats.uptime_seconds), 3600)
    minutes = rest // 60
    lines = [
        "**Bot statistics**",
        "",
        f"Base dictionary: {stats.base_words} words",
        f"Community taught: {stats.taught_words} words",
        f"Total vocabulary: {stats.total_words} words",
        f"Cached machine translations: {stats.api_cached_words}",
        f"Storage: {stats.store_backend}",
        f"Uptime: {hours}h {minutes}m",
    ]
    if stats.recent:
        lines += ["", "Recent additions:"]
        lines += [f'• "{english}" → "{tulu}"' for english, tulu in stats.recent]
    return "\n".join(lines)


def format_numbers(reference: Sequence[tuple[str, str]]) -> str:
    lines = ["**Tulu numbers**", ""]
    lines += [f"• {digit} → {tulu}" for digit, tulu in reference]
    lines += ["", 'Type "5" or "five" to translate a number.']
    return "\n".join(lines)


def format_help() -> str:
    return "\n".join(
        [
            "**English → Tulu translator**",
            "",
            "Send any English word or phrase and I'll reply in Tulu.",
            "If I don't know it, you can teach me.",
            "",
            "/stats - vocabulary statistics",
            "/learned - recent community words",
            "/correct <word> - fix a community translation",
            "/forget <word> - remove a community translation",
            "/numbers - Tulu numbers",
            "/skip - cancel teaching or correcting",
            "/help - this message",
        ]
    )


def format_unknown_command(command: str) -> str:
    return f"Unknown command /{command}. Use /help to see what I can do."
