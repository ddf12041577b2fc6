"""Shared heatmap and number formatting used by all output backends."""

from typing import List, Tuple

from ..stats import Heatmap, LevelPolicy, level_absolute

# Block glyphs for intensity levels 0-4
BLOCKS = ' ░▒▓█'

MONTH_ABBREVIATIONS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                       'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

# Minimum columns between two month labels
MONTH_LABEL_GAP = 4


def fmt_count(n: int) -> str:
    """Format an integer with thousands separators: 1234567 -> '1,234,567'."""
    return f"{n:,}"


def month_abbr(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_ABBREVIATIONS[month - 1]
    return '???'


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[:width - 1] + '…'


def month_label_positions(heatmap: Heatmap) -> List[Tuple[int, str]]:
    """Week columns that start a month label, with the label text.

    A label is placed at the first week of each new month, unless the
    previous label is fewer than MONTH_LABEL_GAP columns back.
    """
    positions = []
    last_month = None
    last_pos = 0

    for i, bucket in enumerate(heatmap.weeks):
        month = bucket.week_start.month
        if month == last_month:
            continue
        if i == 0 or i >= last_pos + MONTH_LABEL_GAP:
            positions.append((i, month_abbr(month)))
            last_pos = i
        last_month = month

    return positions


def heatmap_header(heatmap: Heatmap) -> str:
    """Month labels aligned with the heatmap body."""
    row = [' '] * len(heatmap.weeks)
    for i, label in month_label_positions(heatmap):
        for j, ch in enumerate(label):
            if i + j < len(row):
                row[i + j] = ch
    return ''.join(row)


def heatmap_body(heatmap: Heatmap, policy: LevelPolicy = level_absolute) -> str:
    """One block glyph per week, oldest first."""
    return ''.join(BLOCKS[level] for level in heatmap.levels(policy))


def heatmap_code_block(heatmap: Heatmap, policy: LevelPolicy = level_absolute) -> str:
    """Fenced code block with month labels, the heatmap and the weekly peak."""
    return (
        "```\n"
        f"{heatmap_header(heatmap)}\n"
        f"[{heatmap_body(heatmap, policy)}]\n"
        f"peak: {heatmap.max_count}/wk\n"
        "```"
    )
