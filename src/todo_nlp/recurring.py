"""
Recurrence phrase recognition for todo-nlp.

This module turns phrases like "toda última sexta do mês" or "every monday"
into iCalendar-style RRULE strings. The rules are emitted for other
components to store and expand; nothing here computes occurrence dates.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .exceptions import RecurrenceError

logger = logging.getLogger(__name__)


class Frequency(Enum):
    """Supported recurrence frequencies"""
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class Weekday(Enum):
    """RRULE weekday codes"""
    SU = "SU"
    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"

    @property
    def index(self) -> int:
        """Python weekday number (0=Monday)."""
        return ["MO", "TU", "WE", "TH", "FR", "SA", "SU"].index(self.value)


# Lowercase weekday names per locale. Add a block to support another language.
WEEKDAY_NAMES: Dict[str, Weekday] = {
    # Portuguese
    "domingo": Weekday.SU,
    "segunda": Weekday.MO,
    "segunda-feira": Weekday.MO,
    "terça": Weekday.TU,
    "terca": Weekday.TU,
    "terça-feira": Weekday.TU,
    "terca-feira": Weekday.TU,
    "quarta": Weekday.WE,
    "quarta-feira": Weekday.WE,
    "quinta": Weekday.TH,
    "quinta-feira": Weekday.TH,
    "sexta": Weekday.FR,
    "sexta-feira": Weekday.FR,
    "sábado": Weekday.SA,
    "sabado": Weekday.SA,
    # English
    "sunday": Weekday.SU,
    "monday": Weekday.MO,
    "tuesday": Weekday.TU,
    "wednesday": Weekday.WE,
    "thursday": Weekday.TH,
    "friday": Weekday.FR,
    "saturday": Weekday.SA,
}


def lookup_weekday(name: str) -> Optional[Weekday]:
    """Look up a weekday by name, case-insensitively."""
    return WEEKDAY_NAMES.get(name.strip().lower())


def weekday_alternation() -> str:
    """Regex alternation of the base weekday names, longest first."""
    names = sorted((name for name in WEEKDAY_NAMES if "-" not in name), key=len, reverse=True)
    return "|".join(re.escape(name) for name in names)


@dataclass(frozen=True)
class RecurrenceRule:
    """A repeating schedule: frequency plus optional qualifiers."""
    frequency: Frequency
    by_weekday: Optional[Weekday] = None
    by_month_day: Optional[int] = None
    by_set_pos: Optional[int] = None

    def to_rrule(self) -> str:
        """Render as an RRULE string, e.g. ``RRULE:FREQ=MONTHLY;BYMONTHDAY=5``."""
        parts = [f"FREQ={self.frequency.value}"]
        if self.by_month_day is not None:
            parts.append(f"BYMONTHDAY={self.by_month_day}")
        if self.by_weekday is not None:
            parts.append(f"BYDAY={self.by_weekday.value}")
        if self.by_set_pos is not None:
            parts.append(f"BYSETPOS={self.by_set_pos}")
        return "RRULE:" + ";".join(parts)

    def __str__(self) -> str:
        return self.to_rrule()

    @classmethod
    def from_rrule(cls, rule: str) -> "RecurrenceRule":
        """Read back a rule produced by :meth:`to_rrule`.

        Raises:
            RecurrenceError: If the string is not a supported RRULE
        """
        body = rule.strip()
        if body.upper().startswith("RRULE:"):
            body = body[len("RRULE:"):]

        fields: Dict[str, str] = {}
        for part in filter(None, body.split(";")):
            key, sep, value = part.partition("=")
            if not sep:
                raise RecurrenceError(f"Malformed RRULE part: {part!r}", rule=rule)
            fields[key.strip().upper()] = value.strip().upper()

        try:
            frequency = Frequency(fields.pop("FREQ"))
        except KeyError:
            raise RecurrenceError("RRULE has no FREQ", rule=rule)
        except ValueError:
            raise RecurrenceError(f"Unsupported frequency in {rule!r}", rule=rule)

        try:
            by_weekday = Weekday(fields.pop("BYDAY")) if "BYDAY" in fields else None
            by_month_day = int(fields.pop("BYMONTHDAY")) if "BYMONTHDAY" in fields else None
            by_set_pos = int(fields.pop("BYSETPOS")) if "BYSETPOS" in fields else None
        except ValueError as e:
            raise RecurrenceError(f"Invalid RRULE qualifier in {rule!r}: {e}", rule=rule)

        if fields:
            raise RecurrenceError(f"Unsupported RRULE parts: {', '.join(sorted(fields))}", rule=rule)

        return cls(frequency, by_weekday, by_month_day, by_set_pos)


def _monthly_on_day(match) -> Optional[RecurrenceRule]:
    day = int(match.group(1))
    if not 1 <= day <= 31:
        return None
    return RecurrenceRule(Frequency.MONTHLY, by_month_day=day)


def _monthly_last_weekday(match) -> Optional[RecurrenceRule]:
    weekday = lookup_weekday(match.group(1))
    if weekday is None:
        return None
    return RecurrenceRule(Frequency.MONTHLY, by_weekday=weekday, by_set_pos=-1)


def _weekly_on_weekday(match) -> Optional[RecurrenceRule]:
    weekday = lookup_weekday(match.group(1))
    if weekday is None:
        return None
    return RecurrenceRule(Frequency.WEEKLY, by_weekday=weekday)


_WD = weekday_alternation()
_OF_MONTH = r"(?:do\s+m[êe]s|of\s+the\s+month)"

RuleBuilder = Callable[..., Optional[RecurrenceRule]]


class RecurrenceParser:
    """Finds the first recurrence phrase in a line of text"""

    # Most specific first; the first pattern that yields a rule wins.
    PATTERNS: List[Tuple[re.Pattern, RuleBuilder]] = [
        (re.compile(rf"\b(?:a\s+cada|todo\s+dia|every|each)\s+(\d+)(?:st|nd|rd|th)?\s+{_OF_MONTH}",
                    re.IGNORECASE),
         _monthly_on_day),
        (re.compile(rf"\b(?:toda\s+[úu]ltima|every\s+last)\s+({_WD})(?:-feira)?(?:\s+{_OF_MONTH})?",
                    re.IGNORECASE),
         _monthly_last_weekday),
        (re.compile(rf"\b(?:toda|todas\s+as|todos\s+os|every|each)\s+({_WD})(?:s?-feiras?|s)?\b",
                    re.IGNORECASE),
         _weekly_on_weekday),
        (re.compile(r"\b(?:todo\s+dia|todos\s+os\s+dias|diariamente|every\s+day|daily)\b", re.IGNORECASE),
         lambda m: RecurrenceRule(Frequency.DAILY)),
        (re.compile(r"\b(?:toda\s+semana|todas\s+as\s+semanas|semanalmente|every\s+week|weekly)\b",
                    re.IGNORECASE),
         lambda m: RecurrenceRule(Frequency.WEEKLY)),
        (re.compile(r"\b(?:todo\s+m[êe]s|todos\s+os\s+meses|mensalmente|every\s+month|monthly)\b",
                    re.IGNORECASE),
         lambda m: RecurrenceRule(Frequency.MONTHLY)),
    ]

    @classmethod
    def extract(cls, text: str) -> Tuple[Optional[RecurrenceRule], str]:
        """Extract the first recurrence phrase from text.

        Returns:
            The rule (or None) and the text with the matched phrase removed
        """
        for regex, builder in cls.PATTERNS:
            match = regex.search(text)
            if not match:
                continue

            rule = builder(match)
            if rule is None:
                continue

            logger.debug(f"Recurrence {rule} from {match.group(0)!r}")
            return rule, text[:match.start()] + text[match.end():]

        return None, text

    @classmethod
    def parse(cls, text: str) -> Optional[RecurrenceRule]:
        """Parse a recurrence phrase without caring about the leftover text."""
        rule, _ = cls.extract(text)
        return rule
