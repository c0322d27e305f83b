"""Free-text date/time recognition for task lines."""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Callable, List, Optional, Tuple

import parsedatetime

from .recurring import lookup_weekday, weekday_alternation
from .utils.datetime import add_months, is_valid_clock, next_weekday, safe_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateMatch:
    """A date expression found in text."""
    text: str
    date: date
    hour: Optional[int] = None
    minute: Optional[int] = None
    hour_certain: bool = False  # False when the hour was defaulted, not written
    index: int = 0


# recognizer(text, reference, locale, forward) -> matches ordered by position
Recognizer = Callable[[str, datetime, str, bool], List[DateMatch]]


RELATIVE_DAYS = {
    "hoje": 0,
    "today": 0,
    "amanhã": 1,
    "amanha": 1,
    "tomorrow": 1,
    "depois de amanhã": 2,
    "depois de amanha": 2,
    "day after tomorrow": 2,
    "semana que vem": 7,
    "próxima semana": 7,
    "proxima semana": 7,
    "next week": 7,
}

RELATIVE_MONTHS = {
    "mês que vem": 1,
    "mes que vem": 1,
    "próximo mês": 1,
    "proximo mes": 1,
    "next month": 1,
}


def _phrase_alternation(phrases) -> str:
    ordered = sorted(phrases, key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(word) for word in phrase.split()) for phrase in ordered)


_CLOCK = r"(\d{1,2})(?::(\d{2}))?(?:\s*(am|pm))?\b"


@lru_cache(maxsize=None)
def _constants(locale: str) -> parsedatetime.Constants:
    return parsedatetime.Constants(locale, usePyICU=False)


class DateRecognizer:
    """Finds date expressions using a keyword table, then parsedatetime."""

    def __init__(self, locale: str = "pt_BR"):
        self.locale = locale
        self.day_first = not locale.lower().startswith("en_us")

        self.patterns = {
            "relative_day": re.compile(rf"\b(?:{_phrase_alternation(RELATIVE_DAYS)})\b", re.IGNORECASE),
            "relative_month": re.compile(rf"\b(?:{_phrase_alternation(RELATIVE_MONTHS)})\b", re.IGNORECASE),
            "weekday": re.compile(
                rf"\b((?:(?:na|no|on|next|pr[óo]xim[ao])\s+){{0,2}})({weekday_alternation()})(?:-feira)?\b",
                re.IGNORECASE),
            "iso": re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b"),
            "numeric": re.compile(r"\b(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?\b"),
            "month_day": re.compile(r"\bdia\s+(\d{1,2})\b", re.IGNORECASE),
            "time_only": re.compile(rf"(?<!\w)(?:[àa]s|at)\s+{_CLOCK}", re.IGNORECASE),
        }
        self.clock_suffix = re.compile(rf"\s+(?:[àa]s|at|@)\s+{_CLOCK}", re.IGNORECASE)

    def recognize(self, text: str, reference: datetime, forward: bool = True) -> List[DateMatch]:
        """Find date expressions in text, ordered by position."""
        if not text or not text.strip():
            return []

        matches = self._keyword_matches(text, reference, forward)
        if matches:
            return matches
        return self._fallback_matches(text, reference)

    def _keyword_matches(self, text: str, reference: datetime, forward: bool) -> List[DateMatch]:
        today = reference.date()
        candidates: List[Tuple[int, int, date]] = []

        for match in self.patterns["relative_day"].finditer(text):
            offset = RELATIVE_DAYS[" ".join(match.group(0).lower().split())]
            candidates.append((match.start(), match.end(), today + timedelta(days=offset)))

        for match in self.patterns["relative_month"].finditer(text):
            offset = RELATIVE_MONTHS[" ".join(match.group(0).lower().split())]
            candidates.append((match.start(), match.end(), add_months(today, offset)))

        for match in self.patterns["weekday"].finditer(text):
            weekday = lookup_weekday(match.group(2))
            if weekday is None:
                continue
            resolved = next_weekday(today, weekday.index)
            if resolved == today and re.search(r"next|pr[óo]xim", match.group(1), re.IGNORECASE):
                resolved += timedelta(days=7)
            candidates.append((match.start(), match.end(), resolved))

        for match in self.patterns["iso"].finditer(text):
            resolved = safe_date(*(int(part) for part in match.groups()))
            if resolved:
                candidates.append((match.start(), match.end(), resolved))

        for match in self.patterns["numeric"].finditer(text):
            resolved = self._numeric_date(match, today, forward)
            if resolved:
                candidates.append((match.start(), match.end(), resolved))

        for match in self.patterns["month_day"].finditer(text):
            resolved = self._month_day(int(match.group(1)), today, forward)
            if resolved:
                candidates.append((match.start(), match.end(), resolved))

        matches = []
        for start, end, resolved in candidates:
            hour = minute = None
            suffix = self.clock_suffix.match(text, end)
            if suffix:
                clock = self._clock(suffix)
                if clock:
                    hour, minute = clock
                    end = suffix.end()
            matches.append(DateMatch(text[start:end], resolved, hour, minute, hour is not None, start))

        for match in self.patterns["time_only"].finditer(text):
            clock = self._clock(match)
            if clock is None:
                continue
            hour, minute = clock
            resolved = today
            if forward and (hour, minute) <= (reference.hour, reference.minute):
                resolved = today + timedelta(days=1)
            matches.append(DateMatch(match.group(0), resolved, hour, minute, True, match.start()))

        return self._without_overlaps(matches)

    @staticmethod
    def _without_overlaps(matches: List[DateMatch]) -> List[DateMatch]:
        """Keep the earliest, then longest, of any overlapping matches."""
        chosen: List[DateMatch] = []
        for match in sorted(matches, key=lambda m: (m.index, -len(m.text))):
            if chosen and match.index < chosen[-1].index + len(chosen[-1].text):
                continue
            chosen.append(match)
        return chosen

    @staticmethod
    def _clock(match) -> Optional[Tuple[int, int]]:
        hour = int(match.group(1))
        minute = int(match.group(2)) if match.group(2) else 0
        meridian = (match.group(3) or "").lower()
        if meridian:
            if not 1 <= hour <= 12:
                return None
            hour = hour % 12 + (12 if meridian == "pm" else 0)
        if not is_valid_clock(hour, minute):
            return None
        return hour, minute

    def _numeric_date(self, match, today: date, forward: bool) -> Optional[date]:
        first, second, year = match.groups()
        day, month = (int(first), int(second)) if self.day_first else (int(second), int(first))

        if year:
            full_year = int(year) + 2000 if len(year) == 2 else int(year)
            return safe_date(full_year, month, day)

        resolved = safe_date(today.year, month, day)
        if resolved and forward and resolved < today:
            resolved = safe_date(today.year + 1, month, day)
        return resolved

    @staticmethod
    def _month_day(day: int, today: date, forward: bool) -> Optional[date]:
        if not 1 <= day <= 31:
            return None
        start = 1 if forward and day < today.day else 0
        # Skip months that lack the day (e.g. "dia 31" in April)
        for offset in range(start, start + 3):
            month_start = add_months(today.replace(day=1), offset)
            resolved = safe_date(month_start.year, month_start.month, day)
            if resolved:
                return resolved
        return None

    def _fallback_matches(self, text: str, reference: datetime) -> List[DateMatch]:
        """Ask parsedatetime for anything the keyword table missed."""
        calendar = parsedatetime.Calendar(_constants(self.locale))
        results = calendar.nlp(text, sourceTime=reference.timetuple())
        if not results:
            return []

        matches = []
        for parsed_dt, flag, start, end, matched in results:
            # flag 0: not a date; the datetime is the wall clock, not the reference
            if flag == 0:
                logger.debug(f"Ignoring unparseable date fragment {matched!r}")
                continue
            if not _is_word_aligned(text, start, end) or matched.strip().isdigit():
                logger.debug(f"Ignoring partial-word date fragment {matched!r}")
                continue
            # A lone month word ("Set", "out") needs a day number to be a date
            if flag == 1 and _is_bare_word(matched):
                logger.debug(f"Ignoring bare word {matched!r}")
                continue
            hour_certain = flag in (2, 3)
            matches.append(DateMatch(
                text=matched,
                date=parsed_dt.date(),
                hour=parsed_dt.hour if hour_certain else None,
                minute=parsed_dt.minute if hour_certain else None,
                hour_certain=hour_certain,
                index=start,
            ))
        return matches


def _is_word_aligned(text: str, start: int, end: int) -> bool:
    before = text[start - 1] if start > 0 else " "
    after = text[end] if end < len(text) else " "
    return not before.isalnum() and not after.isalnum()


def _is_bare_word(matched: str) -> bool:
    words = matched.split()
    return len(words) == 1 and not any(char.isdigit() for char in matched)


@lru_cache(maxsize=None)
def get_recognizer(locale: str = "pt_BR") -> DateRecognizer:
    """Get a shared recognizer for a locale."""
    return DateRecognizer(locale)


def recognize_datetime(text: str, reference: datetime, locale: str = "pt_BR",
                       forward: bool = True) -> List[DateMatch]:
    """Recognize date expressions in text relative to a reference instant."""
    return get_recognizer(locale).recognize(text, reference, forward)
