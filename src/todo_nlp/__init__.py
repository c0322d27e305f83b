"""todo-nlp - natural language quick-add parsing for task lines."""

__version__ = "0.1.0"

from .parser import (
    ParsedTask,
    TaskParser,
    TaskBuilder,
    parse_task,
    parse_task_input,
)
from .recurring import RecurrenceRule, Frequency, Weekday
from .dates import DateMatch, DateRecognizer, recognize_datetime

__all__ = [
    "ParsedTask",
    "TaskParser",
    "TaskBuilder",
    "parse_task",
    "parse_task_input",
    "RecurrenceRule",
    "Frequency",
    "Weekday",
    "DateMatch",
    "DateRecognizer",
    "recognize_datetime",
    "__version__",
]
