from typing import List, Literal, Optional

from cinco.utils import config

ALIGN_MARKERS = {
    "l": ":---",
    "c": ":---:",
    "r": "---:",
}


def format_price(amount: float) -> str:
    """Format a peso amount the way the shop displays it, e.g. ₱140.00"""
    return f"{config.CURRENCY}{amount:,.2f}"


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[object]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Render rows as a Markdown table for the MarkdownViewer panels.

    Args:
        headers: column headers, or None to use the first row as headers.
        rows: table body, cells are converted with str().
        aligns: 'l', 'c' or 'r' per column. Defaults to left aligned.

    Returns:
        str: the table, or an empty string when there are no rows.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    aligns = aligns or ["l"] * len(headers)
    if len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    def line(cells) -> str:
        return "| " + " | ".join(str(c) for c in cells) + " |"

    table = [line(headers), line(ALIGN_MARKERS[a] for a in aligns)]
    table.extend(line(row) for row in rows)
    return "\n".join(table)
