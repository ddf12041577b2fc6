"""Output backends for gerritoscope reports."""

from .markdown import render_markdown
from .svg import THEMES, render_svg
from .terminal import OutputFormatter

__all__ = ['OutputFormatter', 'THEMES', 'render_markdown', 'render_svg']
