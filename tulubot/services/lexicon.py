"""Verified base lexicon — static English → Tulu entries.

Built once at process start and never mutated. Every caller normalizes its
input with ``normalize()`` before looking anything up, so the keys below are
already lowercase, trimmed and single-spaced.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping

import structlog

from tulubot.services.store.base import Table, TranslationStore

logger = structlog.get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return _WHITESPACE.sub(" ", text.strip().lower())


class Category(str, Enum):
    GREETINGS = "greetings"
    NUMBERS = "numbers"
    FAMILY = "family"
    COLORS = "colors"
    COMMON = "common"
    PLACES_THINGS = "places_things"
    ACTIONS = "actions"
    GENERAL = "general"


@dataclass(frozen=True)
class LexiconEntry:
    english: str
    tulu: str
    category: Category
    verified: bool = True

    def to_record(self) -> dict:
        now = datetime.now(timezone.utc)
        return {
            "english": self.english,
            "tulu": self.tulu,
            "category": self.category.value,
            "verified": True,
            "created_at": now,
            "updated_at": now,
        }


_SEED: dict[Category, dict[str, str]] = {
    Category.GREETINGS: {
        "hello": "namaskara", "hi": "namaskara", "hey": "namaskara",
        "good morning": "udige namaskara", "good evening": "sanje namaskara",
        "good night": "ratre namaskara", "goodbye": "barpe", "bye": "barpe",
        "welcome": "swagata", "thank you": "dhanyavada", "thanks": "dhanyavada",
    },
    Category.NUMBERS: {
        "zero": "pundu", "one": "onji", "two": "raddu", "three": "muji",
        "four": "nalku", "five": "aidu", "six": "aaru", "seven": "elu",
        "eight": "enmu", "nine": "ombodu", "ten": "pattu",
        "eleven": "pannondu", "twelve": "panniraddu", "thirteen": "paddmuji",
        "fourteen": "paddnalku", "fifteen": "paddaidu", "sixteen": "paddarru",
        "seventeen": "paddelu", "eighteen": "paddenmu", "nineteen": "paddombodu",
        "twenty": "ippattu", "thirty": "muppattu", "forty": "nalpattu",
        "fifty": "aivattu", "sixty": "aruvattu", "seventy": "eppattu",
        "eighty": "enpattu", "ninety": "tombattu", "hundred": "nuru",
        "thousand": "saayira", "lakh": "laksha",
        "0": "pundu", "1": "onji", "2": "raddu", "3": "muji", "4": "nalku",
        "5": "aidu", "6": "aaru", "7": "elu", "8": "enmu", "9": "ombodu",
        "10": "pattu", "11": "pannondu", "12": "panniraddu", "13": "paddmuji",
        "14": "paddnalku", "15": "paddaidu", "16": "paddarru", "17": "paddelu",
        "18": "paddenmu", "19": "paddombodu", "20": "ippattu",
        "21": "ippatonji", "22": "ippatraddu", "25": "ippataidu",
        "30": "muppattu", "40": "nalpattu", "50": "aivattu", "60": "aruvattu",
        "70": "eppattu", "80": "enpattu", "90": "tombattu", "100": "nuru",
        "1000": "saayira",
        "first": "modali", "second": "randane", "third": "munjane",
        "last": "kainche", "how many": "yethra", "how much": "yethra",
        "count": "lekka", "number": "sankhye",
    },
    Category.FAMILY: {
        "mother": "amma", "father": "appa", "brother": "anna", "sister": "akka",
        "grandfather": "ajja", "grandmother": "ajji", "uncle": "mama",
        "aunt": "mami", "son": "maga", "daughter": "magal",
        "husband": "ganda", "wife": "hendati",
    },
    Category.COLORS: {
        "red": "kempu", "green": "pacche", "blue": "neeli", "yellow": "arishina",
        "white": "bolpu", "black": "karpu", "brown": "kahve", "orange": "kittale",
    },
    Category.COMMON: {
        "yes": "aye", "no": "illa", "ok": "sari", "okay": "sari",
        "sorry": "kshame", "please": "dayavu",
        "how are you": "yenkulu ullar", "what is your name": "ninna hesaru yenu",
        "where are you": "yer yele ullar", "what are you doing": "yenu maduttullar",
        "how old are you": "ninna vayasu yethra", "where do you live": "yer vasisu ullar",
        "did you eat": "oota aayitha", "what time is it": "yencha velu aayithu",
        "happy": "santoshi", "sad": "dukhi", "angry": "kopa", "tired": "bejaar",
        "hungry": "hasive", "thirsty": "daaha", "sick": "rogi", "healthy": "arogya",
        "more": "jai", "less": "kam", "enough": "saaku", "little": "kochi",
    },
    Category.PLACES_THINGS: {
        "water": "jalu", "house": "mane", "home": "mane", "food": "oota",
        "school": "shale", "office": "karyalaya", "hospital": "aspatre",
        "temple": "deve", "market": "pete", "shop": "angadi", "road": "dhari",
        "village": "grama", "city": "nagara", "left": "yeda", "right": "bala",
        "rain": "male", "sun": "surya", "moon": "chandra", "star": "nakshatra",
        "wind": "gali", "tree": "mara", "flower": "huvu", "river": "aare",
        "head": "tale", "eye": "kannu", "nose": "mookka", "mouth": "bayi",
        "hand": "kai", "leg": "kaal", "hair": "kess", "tooth": "hallu",
    },
    Category.ACTIONS: {
        "come": "bale", "go": "pole", "eat": "tinu", "drink": "kuDi",
        "sit": "kur", "stand": "nille", "sleep": "malpe", "wake up": "yetar",
        "walk": "naDe", "run": "oDu", "stop": "nille", "wait": "tingla",
        "give": "korle", "take": "teele", "see": "kan", "listen": "kel",
        "speak": "mal", "read": "odu", "write": "baraye", "buy": "gont",
        "sell": "achar", "work": "kelsa", "study": "odu", "play": "aaDu",
    },
    Category.GENERAL: {
        "good": "chennu", "bad": "kettadu", "big": "dodd", "small": "kuchi",
        "hot": "bekku", "cold": "thandu",
        "today": "inji", "yesterday": "ninale", "tomorrow": "naalke",
        "morning": "udike", "afternoon": "madhyanna", "evening": "sanje",
        "night": "ratre", "time": "velu", "now": "ipuni", "later": "aga",
        "early": "bega", "late": "kale",
    },
}


class BaseLexicon:
    """Immutable English → Tulu mapping with category metadata."""

    def __init__(self, seed: Mapping[Category, Mapping[str, str]] | None = None) -> None:
        entries: dict[str, LexiconEntry] = {}
        for category, words in (seed or _SEED).items():
            for english, tulu in words.items():
                key = normalize(english)
                entries[key] = LexiconEntry(english=key, tulu=tulu, category=category)
        self._entries: Mapping[str, LexiconEntry] = MappingProxyType(entries)

    def lookup(self, key: str) -> str | None:
        """Return the Tulu text for a normalized key, or None."""
        entry = self._entries.get(key)
        return entry.tulu if entry else None

    def get_entry(self, key: str) -> LexiconEntry | None:
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> Iterator[LexiconEntry]:
        return iter(self._entries.values())

    def by_category(self, category: Category) -> list[LexiconEntry]:
        return [e for e in self._entries.values() if e.category == category]

    def numbers_reference(self) -> list[tuple[str, str]]:
        """Digit keys with their Tulu words, in numeric order."""
        digits = [e for e in self.by_category(Category.NUMBERS) if e.english.isdigit()]
        return [(e.english, e.tulu) for e in sorted(digits, key=lambda e: int(e.english))]

    async def seed_store(self, store: TranslationStore) -> int:
        """Copy every entry into the store's BASE table. Returns rows written.

        Skipped when the table already holds at least as many rows as the
        lexicon, so restarts do not rewrite the whole table.
        """
        existing = await store.count(Table.BASE)
        if existing >= len(self):
            logger.debug("base_lexicon_seed_skipped", existing=existing)
            return 0

        written = 0
        for entry in self._entries.values():
            if await store.put(Table.BASE, entry.english, entry.to_record()):
                written += 1
        logger.info("base_lexicon_seeded", entries=len(self), written=written)
        return written
