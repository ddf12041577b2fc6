"""Terminal report for aggregated Gerrit activity."""

from typing import List, Sequence, Tuple

from ..stats import Heatmap, LevelPolicy, Stats, level_absolute
from .formatting import fmt_count, heatmap_body, heatmap_header, truncate


# ANSI color codes
GREEN = '\033[32m'
RED = '\033[31m'
RESET = '\033[0m'

BOX_WIDTH = 60
PROJECT_NAME_WIDTH = 36


class OutputFormatter:
    """Formats and prints the activity report."""

    def __init__(self, owner: str, hosts: Sequence[Tuple[str, str]],
                 level_policy: LevelPolicy = level_absolute, use_color: bool = True):
        """Initialize the output formatter.

        Args:
            owner: The account being reported on
            hosts: ``(alias, base_url)`` pairs that were queried
            level_policy: Maps a week's count to a glyph intensity
            use_color: Whether to emit ANSI color codes
        """
        self.owner = owner
        self.hosts = list(hosts)
        self.level_policy = level_policy
        self.use_color = use_color

    def _green(self, text: str) -> str:
        return f"{GREEN}{text}{RESET}" if self.use_color else text

    def _red(self, text: str) -> str:
        return f"{RED}{text}{RESET}" if self.use_color else text

    def _line_delta(self, insertions: int, deletions: int) -> str:
        return f"{self._green('+' + fmt_count(insertions))} / {self._red('-' + fmt_count(deletions))}"

    def format_summary(self, stats: Stats) -> List[str]:
        """Build the report as a list of lines."""
        host_label = ', '.join(alias for alias, _ in self.hosts)
        bar = '─' * BOX_WIDTH
        heatmap = stats.heatmap

        lines = [
            '',
            f"┌{bar}┐",
            f"│  gerritoscope · {self.owner:<{BOX_WIDTH - 17}}│",
            f"│  hosts: {host_label:<{BOX_WIDTH - 9}}│",
            f"└{bar}┘",
        ]
        lines.extend(self._format_heatmap(heatmap))
        lines.extend([
            '',
            f"  Merged CLs     {fmt_count(stats.total_merged):>7} all time   ·  "
            f"{fmt_count(stats.recent_merged_90d):>7} last 90d",
            f"  Reviews done   {fmt_count(stats.total_reviews):>7} last year  ·  "
            f"{fmt_count(stats.recent_reviews_90d):>7} last 90d",
            f"  Streak             current {heatmap.current_streak()} wks ·    "
            f"longest {heatmap.longest_streak()} wks",
            f"  Lines changed      {self._line_delta(stats.total_insertions, stats.total_deletions)}",
        ])

        if stats.top_projects:
            lines.extend(['', '  Top projects'])
            for project in stats.top_projects:
                lines.append(
                    f"    {truncate(project.name, PROJECT_NAME_WIDTH):<{PROJECT_NAME_WIDTH}} "
                    f"{fmt_count(project.merged):>5} CLs  "
                    f"{self._line_delta(project.insertions, project.deletions)}"
                )

        lines.append('')
        return lines

    def _format_heatmap(self, heatmap: Heatmap) -> List[str]:
        return [
            '',
            f"  {heatmap_header(heatmap)}",
            f"  [{heatmap_body(heatmap, self.level_policy)}]",
            f"  peak: {heatmap.max_count} contributions/week",
        ]

    def print_summary(self, stats: Stats):
        """Print the report to stdout."""
        for line in self.format_summary(stats):
            print(line)
