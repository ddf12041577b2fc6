"""Markdown report rendered from a Jinja2 template."""

from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from jinja2 import Environment

from ..stats import LevelPolicy, Stats, level_absolute
from .formatting import fmt_count, heatmap_code_block

TEMPLATE = """\
## gerritoscope · {{ owner }}

{{ heatmap_block }}

| | |
|:--|--:|
| Merged (all time) | **{{ total_merged }}** |
| Last 90 days | **{{ recent_90d }}** |
| Reviews (52 wk) | **{{ total_reviews }}** |
| Reviews (90d) | **{{ recent_reviews_90d }}** |
| Lines added | **+{{ total_ins }}** |
| Lines removed | **-{{ total_del }}** |
| Current streak | **{{ current_streak }} wk** |
| Longest streak | **{{ longest_streak }} wk** |

**Top projects**

| Project | CLs | +Lines | -Lines |
|:--------|----:|-------:|-------:|
{% for p in top_projects %}
| `{{ p.name }}` | {{ p.merged }} | +{{ p.ins }} | -{{ p.del }} |
{% endfor %}

---

_Updated {{ generated_at }} · {{ host_links }}_
"""

_env = Environment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)


def host_links(owner: str, hosts: Sequence[Tuple[str, str]]) -> str:
    """Footer links to each host's owner search.

    A single host is shown by hostname, several hosts by alias.
    """
    if len(hosts) == 1:
        _, url = hosts[0]
        display = url.split('://', 1)[-1]
        return f"[{display}]({url}/q/owner:{owner})"
    return ' · '.join(f"[{alias}]({url}/q/owner:{owner})" for alias, url in hosts)


def render_markdown(owner: str, hosts: Sequence[Tuple[str, str]], stats: Stats,
                    level_policy: LevelPolicy = level_absolute,
                    generated_at: Optional[datetime] = None) -> str:
    """Render the markdown report.

    Args:
        owner: The account being reported on
        hosts: ``(alias, base_url)`` pairs that were queried
        stats: Computed statistics
        level_policy: Maps a week's count to a glyph intensity
        generated_at: Timestamp shown in the footer (defaults to now)

    Returns:
        The markdown document
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    heatmap = stats.heatmap

    projects = [
        {
            'name': p.name,
            'merged': fmt_count(p.merged),
            'ins': fmt_count(p.insertions),
            'del': fmt_count(p.deletions),
        }
        for p in stats.top_projects
    ]

    return _env.from_string(TEMPLATE).render(
        owner=owner,
        heatmap_block=heatmap_code_block(heatmap, level_policy),
        total_merged=fmt_count(stats.total_merged),
        recent_90d=fmt_count(stats.recent_merged_90d),
        total_reviews=fmt_count(stats.total_reviews),
        recent_reviews_90d=fmt_count(stats.recent_reviews_90d),
        total_ins=fmt_count(stats.total_insertions),
        total_del=fmt_count(stats.total_deletions),
        current_streak=heatmap.current_streak(),
        longest_streak=heatmap.longest_streak(),
        top_projects=projects,
        generated_at=generated_at.strftime('%Y-%m-%d'),
        host_links=host_links(owner, hosts),
    )
