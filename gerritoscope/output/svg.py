"""Self-contained SVG heatmap card for embedding in a profile README.

The default ``github`` theme switches between a light and a dark palette
with a ``prefers-color-scheme`` media query. The other themes are fixed.
In multi-colour mode each week is tinted by its dominant project family.
"""

from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from jinja2 import Environment

from ..errors import UnknownThemeError
from ..stats import Heatmap, LevelPolicy, Stats, level_absolute
from .formatting import fmt_count, month_label_positions


class Palette(NamedTuple):
    """Colours for one display mode; ``levels[0]`` is the empty cell."""
    bg: str
    border: str
    title: str
    text: str
    muted: str
    levels: Tuple[str, str, str, str, str]

    def css_vars(self) -> List[Tuple[str, str]]:
        pairs = [('bg', self.bg), ('border', self.border), ('title', self.title),
                 ('text', self.text), ('muted', self.muted)]
        pairs.extend((f"l{i}", color) for i, color in enumerate(self.levels))
        return pairs


@dataclass(frozen=True)
class Theme:
    """A light palette, plus a dark one when the theme follows the viewer."""
    light: Palette
    dark: Optional[Palette] = None


GITHUB_LIGHT = Palette('#ffffff', '#d0d7de', '#24292f', '#57606a', '#6e7781',
                       ('#ebedf0', '#9be9a8', '#40c463', '#30a14e', '#216e39'))
GITHUB_DARK = Palette('#0d1117', '#30363d', '#c9d1d9', '#8b949e', '#6e7781',
                      ('#161b22', '#0e4429', '#006d32', '#26a641', '#39d353'))

THEMES: Dict[str, Theme] = {
    'github': Theme(GITHUB_LIGHT, GITHUB_DARK),
    'github-light': Theme(GITHUB_LIGHT),
    'github-dark': Theme(GITHUB_DARK),
    'solarized-light': Theme(Palette(
        '#fdf6e3', '#93a1a1', '#073642', '#657b83', '#93a1a1',
        ('#eee8d5', '#b5d5a8', '#6dbf67', '#3a9443', '#1a6e29'))),
    'solarized-dark': Theme(Palette(
        '#002b36', '#073642', '#93a1a1', '#657b83', '#586e75',
        ('#073642', '#0a3828', '#0a6640', '#1a8c52', '#2ab567'))),
    'gruvbox-dark': Theme(Palette(
        '#282828', '#504945', '#ebdbb2', '#a89984', '#7c6f64',
        ('#3c3836', '#1d4a26', '#2d6a2f', '#3d8c3d', '#52b452'))),
    'gruvbox-light': Theme(Palette(
        '#fbf1c7', '#d5c4a1', '#3c3836', '#665c54', '#928374',
        ('#f2e5bc', '#b8d8a8', '#6dbf67', '#3a9443', '#1a6e29'))),
    'tokyo-night': Theme(Palette(
        '#1a1b26', '#292e42', '#c0caf5', '#a9b1d6', '#565f89',
        ('#24283b', '#0d3b2e', '#1a6b3c', '#26a651', '#39d353'))),
    'dracula': Theme(Palette(
        '#282a36', '#44475a', '#f8f8f2', '#6272a4', '#44475a',
        ('#44475a', '#1a3d2b', '#2d6a35', '#3d9140', '#50bd55'))),
    'catppuccin-mocha': Theme(Palette(
        '#1e1e2e', '#313244', '#cdd6f4', '#a6adc8', '#6c7086',
        ('#313244', '#1a4731', '#1f6e3c', '#2a9c51', '#39d353'))),
}

DEFAULT_THEME = 'github'

# (light, dark) fills for levels 1-4, assigned to families in sorted order
FAMILY_PALETTES = (
    (('#9be9a8', '#40c463', '#30a14e', '#216e39'), ('#0e4429', '#006d32', '#26a641', '#39d353')),
    (('#a8d8f0', '#5ba3d9', '#1a6eb5', '#0d4a8c'), ('#0d2940', '#0d4a8c', '#1a6eb5', '#2e93d9')),
    (('#d4b8f0', '#a370d9', '#7a3cba', '#531e8c'), ('#2a1040', '#4d1e8c', '#7a3cba', '#a855d9')),
    (('#ffd199', '#ffaa44', '#e07b00', '#a85200'), ('#401d00', '#8c3d00', '#cc6600', '#ff8c1a')),
    (('#ffb3b3', '#ff6666', '#cc1a1a', '#991111'), ('#3d0000', '#8c0d0d', '#cc2222', '#e84444')),
    (('#a8f0e8', '#3dd9c8', '#1aab99', '#0d7a6d'), ('#0d2e2b', '#0d6b60', '#1aab99', '#2dd4bf')),
)

# Card geometry in px; a cell is a 10 px square plus a 3 px gap
CARD_WIDTH = 740
CARD_HEIGHT = 140
GRID_LEFT = 16
GRID_TOP = 52
CELL = 13
SQUARE = 10
TITLE_Y = 30
MONTH_Y = 46
PEAK_Y = 78
DIVIDER_Y = 90
STATS_Y = 106

FONT = 'ui-monospace,SFMono-Regular,Menlo,monospace'

TEMPLATE = """\
<svg xmlns="http://www.w3.org/2000/svg" width="{{ width }}" height="{{ height }}" \
viewBox="0 0 {{ width }} {{ height }}" role="img" aria-label="gerritoscope heatmap for {{ owner }}">
<title>gerritoscope · {{ owner }}</title>
<style>
:root {
{% for name, value in theme.light.css_vars() %}
  --{{ name }}:{{ value }};
{% endfor %}
}
{% if theme.dark %}
@media (prefers-color-scheme: dark) {
  :root {
{% for name, value in theme.dark.css_vars() %}
    --{{ name }}:{{ value }};
{% endfor %}
  }
}
{% endif %}
rect.week { stroke: none; }
.l0{fill:var(--l0)} .l1{fill:var(--l1)} .l2{fill:var(--l2)}
.l3{fill:var(--l3)} .l4{fill:var(--l4)}
{% for line in family_css %}
{{ line }}
{% endfor %}
</style>
<rect width="{{ width }}" height="{{ height }}" rx="6" fill="var(--bg)" stroke="var(--border)" stroke-width="1"/>
<text x="{{ grid_left }}" y="{{ title_y }}" font-family="{{ font }}" font-size="14" font-weight="bold" \
fill="var(--title)">{{ title }}</text>
{% for x, label in months %}
<text x="{{ x }}" y="{{ month_y }}" font-family="{{ font }}" font-size="11" fill="var(--muted)">{{ label }}</text>
{% endfor %}
<g class="heatmap">
{% for cell in cells %}
  <rect x="{{ cell.x }}" y="{{ grid_top }}" width="{{ square }}" height="{{ square }}" rx="2" \
class="{{ cell.css_class }}"><title>{{ cell.tooltip }}</title></rect>
{% endfor %}
</g>
<text x="{{ grid_left }}" y="{{ peak_y }}" font-family="{{ font }}" font-size="10" \
fill="var(--muted)">peak: {{ peak }}/wk</text>
<line x1="{{ grid_left }}" y1="{{ divider_y }}" x2="{{ width - grid_left }}" y2="{{ divider_y }}" \
stroke="var(--border)" stroke-width="1"/>
<text x="{{ grid_left }}" y="{{ stats_y }}" font-family="{{ font }}" font-size="11" fill="var(--text)">\
{{ merged }} merged · {{ recent_90d }}/90d · {{ reviewed_90d }} reviewed · \
<tspan fill="#3fb950">+{{ ins }}</tspan>/<tspan fill="#f85149">−{{ dels }}</tspan> · \
{{ streak }}wk streak</text>
</svg>
"""

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)


def theme_by_name(name: str) -> Theme:
    """Look up a theme.

    Raises:
        UnknownThemeError: If ``name`` is not in THEMES
    """
    try:
        return THEMES[name]
    except KeyError:
        raise UnknownThemeError(
            f"unknown SVG theme {name!r}; choose one of: {', '.join(THEMES)}"
        ) from None


def week_families(heatmap: Heatmap) -> List[str]:
    """Distinct dominant families of the heatmap weeks, sorted by name."""
    families = {bucket.dominant_family() for bucket in heatmap.weeks}
    families.discard(None)
    return sorted(families)


def family_css(families: Sequence[str]) -> List[str]:
    """Per-family level variables and ``.fN.lM`` fill rules.

    Palettes are assigned by position and wrap around after
    FAMILY_PALETTES is exhausted.
    """
    lines = []
    for fi in range(len(families)):
        light, dark = FAMILY_PALETTES[fi % len(FAMILY_PALETTES)]
        lines.append(':root {')
        lines.extend(f"  --f{fi}-l{li}:{color};" for li, color in enumerate(light, 1))
        lines.append('}')
        lines.append('@media (prefers-color-scheme: dark) {')
        lines.append('  :root {')
        lines.extend(f"    --f{fi}-l{li}:{color};" for li, color in enumerate(dark, 1))
        lines.append('  }')
        lines.append('}')
    for fi in range(len(families)):
        for li in range(1, 5):
            lines.append(f".f{fi}.l{li}{{fill:var(--f{fi}-l{li})}}")
    return lines


def title_text(owner: str, hosts: Sequence[Tuple[str, str]]) -> str:
    if len(hosts) == 1:
        return f"gerritoscope · {owner}"
    return f"gerritoscope · {owner} [{', '.join(alias for alias, _ in hosts)}]"


def _cells(heatmap: Heatmap, level_policy: LevelPolicy, families: Sequence[str]) -> List[Dict]:
    index = {name: i for i, name in enumerate(families)}
    cells = []
    for i, (bucket, level) in enumerate(zip(heatmap.weeks, heatmap.levels(level_policy))):
        css_class = f"week l{level}"
        family = bucket.dominant_family()
        if level > 0 and family in index:
            css_class = f"week f{index[family]} l{level}"

        week_of = bucket.week_start.strftime('%Y-%m-%d')
        if bucket.count == 0:
            tooltip = f"No CLs – week of {week_of}"
        else:
            plural = '' if bucket.count == 1 else 's'
            tooltip = f"{bucket.count} CL{plural} – week of {week_of}"

        cells.append({'x': GRID_LEFT + i * CELL, 'css_class': css_class, 'tooltip': tooltip})
    return cells


def render_svg(owner: str, hosts: Sequence[Tuple[str, str]], stats: Stats,
               theme: str = DEFAULT_THEME, multi_color: bool = False,
               level_policy: LevelPolicy = level_absolute) -> str:
    """Render the heatmap card as an SVG document.

    Args:
        owner: The account being reported on
        hosts: ``(alias, base_url)`` pairs that were queried
        stats: Computed statistics
        theme: Name of an entry in THEMES
        multi_color: Tint each week by its dominant project family
        level_policy: Maps a week's count to a cell intensity

    Returns:
        The SVG markup

    Raises:
        UnknownThemeError: If the theme name is unknown
    """
    palette = theme_by_name(theme)
    heatmap = stats.heatmap
    families = week_families(heatmap) if multi_color else []

    return _env.from_string(TEMPLATE).render(
        width=CARD_WIDTH,
        height=CARD_HEIGHT,
        grid_left=GRID_LEFT,
        grid_top=GRID_TOP,
        square=SQUARE,
        title_y=TITLE_Y,
        month_y=MONTH_Y,
        peak_y=PEAK_Y,
        divider_y=DIVIDER_Y,
        stats_y=STATS_Y,
        font=FONT,
        owner=owner,
        theme=palette,
        family_css=family_css(families),
        title=title_text(owner, hosts),
        months=[(GRID_LEFT + col * CELL, label) for col, label in month_label_positions(heatmap)],
        cells=_cells(heatmap, level_policy, families),
        peak=heatmap.max_count,
        merged=fmt_count(stats.total_merged),
        recent_90d=fmt_count(stats.recent_merged_90d),
        reviewed_90d=fmt_count(stats.recent_reviews_90d),
        ins=fmt_count(stats.total_insertions),
        dels=fmt_count(stats.total_deletions),
        streak=heatmap.current_streak(),
    )
