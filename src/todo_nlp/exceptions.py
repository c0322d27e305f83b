"""Exception hierarchy for todo-nlp.

Parsing itself never raises; these cover the surfaces around it.
"""


class TodoNlpError(Exception):
    """Base exception for todo-nlp errors."""
    pass


class ConfigError(TodoNlpError):
    """Raised when an explicitly requested config file cannot be used."""
    
    def __init__(self, message: str, path=None):
        self.path = path
        super().__init__(message)


class RecurrenceError(TodoNlpError):
    """Raised when a recurrence rule string cannot be read."""
    
    def __init__(self, message: str, rule: str = ""):
        self.rule = rule
        super().__init__(message)
