"""Text helpers for log and error messages."""


def to_repr(text: str) -> str:
    """Quote text on one line, escaping newlines."""
    return "'" + text.replace("\n", "\\n") + "'"
