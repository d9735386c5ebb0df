"""Helpers for pulling the SQL and the readable explanation out of an LLM reply."""
import re

_SQL_BLOCK_RE = re.compile(r"```sql\b(.*?)```", re.IGNORECASE | re.DOTALL)

_EMPHASIS_MARKERS = ("###", "**")


def extract_sql(text: str) -> str:
    """Inner text of the first ```sql fenced block, trimmed; "" when there is none."""
    match = _SQL_BLOCK_RE.search(text or "")
    if not match:
        return ""
    return match.group(1).strip()


def clean_answer(text: str) -> str:
    """Strip the markdown heading/bold markers the console cannot render."""
    for marker in _EMPHASIS_MARKERS:
        text = text.replace(marker, "")
    return text
