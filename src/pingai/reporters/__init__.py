"""Built-in reporters for check results."""

from pingai.reporters.json_reporter import JsonReporter, summarize
from pingai.reporters.text_reporter import TextReporter


def register_builtin_reporters(registry) -> None:
    """Register built-in reporters on the given registry."""
    registry.register_reporter("json", JsonReporter)
    registry.register_reporter("text", TextReporter)


__all__ = [
    "JsonReporter",
    "TextReporter",
    "register_builtin_reporters",
    "summarize",
]
