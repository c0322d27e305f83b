"""Natural language parser for quick-add task lines.

A line such as ``"Pagar conta amanhã 14h #casa !!"`` is read by a fixed
sequence of extraction passes. Each pass removes the text it recognizes,
so later passes only see what earlier ones left behind:

1. priority markers (``!``, ``!!``, ``!!!``)
2. tags (``#word``)
3. recurrence phrases ("toda sexta", "every month", ...)
4. compact clock times ("14h", "às 19h30", "9:15")
5. free-text dates ("amanhã", "20/12", "next friday", ...)

Whatever remains becomes the title.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from .config import ParserConfig
from .dates import Recognizer, recognize_datetime
from .recurring import RecurrenceParser
from .utils.datetime import format_clock, is_valid_clock, now_local

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedTask:
    """Structured fields extracted from one task line."""
    title: str
    due_date: Optional[date] = None
    due_time: Optional[str] = None  # "HH:MM"
    recurrence_rule: Optional[str] = None
    priority: int = 0
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Own a copy of the tags so callers can't change them later."""
        object.__setattr__(self, "tags", list(self.tags))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary with an ISO due date."""
        return {
            "title": self.title,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "due_time": self.due_time,
            "recurrence_rule": self.recurrence_rule,
            "priority": self.priority,
            "tags": list(self.tags),
        }


@dataclass
class _ParseState:
    """Working values threaded through the extraction passes."""
    text: str
    reference: datetime
    due_date: Optional[date] = None
    due_time: Optional[str] = None
    recurrence_rule: Optional[str] = None
    priority: int = 0
    tags: List[str] = field(default_factory=list)


class TaskParser:
    """Parses a free-text task line into a ParsedTask."""

    def __init__(self, config: Optional[ParserConfig] = None,
                 recognizer: Optional[Recognizer] = None):
        self.config = config or ParserConfig()
        self.recognizer = recognizer or recognize_datetime

        priority_marker = re.escape(self.config.priority_marker)
        tag_marker = re.escape(self.config.tag_marker)
        self.patterns = {
            'priority': re.compile(rf"({priority_marker}{{1,{self.config.max_priority}}})(?:\s|$)"),
            'tags': re.compile(rf"{tag_marker}(\w+)"),
            # "19h", "19h30", "14:30h", "às 9h"; needs a boundary or space before the hour
            'time': re.compile(r"(?:\bàs\s+|\bas\s+|\s+)(\d{1,2})(?:h|:)(\d{2})?h?(?:\b|$)", re.IGNORECASE),
            # "as 2", "à 3": a bare number after a preposition
            'abbreviated_time': re.compile(r"^[aà]s?\s*\d+$", re.IGNORECASE),
        }

        self.passes = [
            self._extract_priority,
            self._extract_tags,
            self._extract_recurrence,
            self._extract_locale_time,
            self._extract_datetime,
        ]

    def parse(self, input_text: str, now: Optional[datetime] = None) -> ParsedTask:
        """Parse a task line.

        Args:
            input_text: The line as typed by the user
            now: Reference instant for relative dates (defaults to local now)

        Returns:
            The parsed task; never raises
        """
        original = (input_text or "").strip()
        if not original:
            return ParsedTask(title="")

        state = _ParseState(text=input_text, reference=now or now_local())
        for extract in self.passes:
            extract(state)

        return ParsedTask(
            title=self._finalize_title(state.text, original),
            due_date=state.due_date,
            due_time=state.due_time,
            recurrence_rule=state.recurrence_rule,
            priority=state.priority,
            tags=list(state.tags),
        )

    def _extract_priority(self, state: _ParseState) -> None:
        match = self.patterns['priority'].search(state.text)
        if match:
            state.priority = min(len(match.group(1)), self.config.max_priority)
            state.text = state.text[:match.start()] + " " + state.text[match.end():]
            logger.debug(f"Priority {state.priority}")

    def _extract_tags(self, state: _ParseState) -> None:
        state.tags.extend(match.group(1) for match in self.patterns['tags'].finditer(state.text))
        state.text = self.patterns['tags'].sub('', state.text)
        if state.tags:
            logger.debug(f"Tags {state.tags}")

    def _extract_recurrence(self, state: _ParseState) -> None:
        rule, remaining = RecurrenceParser.extract(state.text)
        if rule:
            state.recurrence_rule = rule.to_rrule()
            state.text = remaining

    def _extract_locale_time(self, state: _ParseState) -> None:
        match = self.patterns['time'].search(state.text)
        if not match:
            return

        hour = int(match.group(1))
        minute = int(match.group(2)) if match.group(2) else 0
        if not is_valid_clock(hour, minute):
            logger.debug(f"Ignoring out-of-range time {match.group(0).strip()!r}")
            return

        state.due_time = format_clock(hour, minute)
        remaining = state.text[:match.start()] + " " + state.text[match.end():]
        state.text = ' '.join(remaining.split())
        logger.debug(f"Time {state.due_time}")

    def _extract_datetime(self, state: _ParseState) -> None:
        try:
            matches = self.recognizer(state.text, state.reference,
                                      self.config.locale, self.config.forward_dates)
        except Exception as e:
            logger.warning(f"Date recognition failed for {state.text!r}: {e}")
            return

        if not matches:
            return

        match = matches[0]
        matched = match.text.strip()
        remaining = state.text.strip()

        # A lone "as 2" is more likely part of the title than a date
        if self.patterns['abbreviated_time'].match(matched) and len(matched) == len(remaining):
            logger.debug(f"Keeping {matched!r} as title text")
            return

        state.due_date = match.date
        if state.due_time is None and match.hour_certain and match.hour is not None:
            state.due_time = format_clock(match.hour, match.minute)

        state.text = state.text.replace(match.text, '', 1)
        logger.debug(f"Date {state.due_date} from {matched!r}")

    def _finalize_title(self, remaining: str, original: str) -> str:
        """Build the title, falling back to the original line if nothing is left."""
        title = ' '.join(remaining.split())
        if title:
            return title

        # Dates/recurrence ate the whole line; keep it, minus markers and tags
        fallback = self.patterns['priority'].sub('', original)
        fallback = self.patterns['tags'].sub('', fallback).strip()
        return fallback or original


class TaskBuilder:
    """Builds create-task payloads from parsed task data."""

    def build(self, parsed: ParsedTask, list_id: Optional[str] = None) -> Dict[str, Any]:
        """Build the payload a task store expects."""
        return {
            "title": parsed.title,
            "dueDate": parsed.due_date.isoformat() if parsed.due_date else None,
            "dueTime": parsed.due_time,
            "recurrenceRule": parsed.recurrence_rule,
            "priority": parsed.priority,
            "tags": ",".join(parsed.tags),
            "listId": list_id,
        }


_default_parser: Optional[TaskParser] = None


def parse_task(input_text: str, now: Optional[datetime] = None) -> ParsedTask:
    """Parse a task line with the default settings."""
    global _default_parser
    if _default_parser is None:
        _default_parser = TaskParser()
    return _default_parser.parse(input_text, now=now)


def parse_task_input(input_text: str, config: Optional[ParserConfig] = None,
                     list_id: Optional[str] = None,
                     now: Optional[datetime] = None) -> Tuple[ParsedTask, Dict[str, Any]]:
    """Parse a task line and build its create-task payload."""
    parser = TaskParser(config)
    parsed = parser.parse(input_text, now=now)
    return parsed, TaskBuilder().build(parsed, list_id)
