"""gerritoscope - Gerrit contribution heatmaps and review statistics."""

__version__ = '0.1.0'

from .models import Change, ChangeMessage, ChangeQuery, ChangeStatus, ReviewEvent, ReviewerQuery
from .api_client import GerritAPIClient
from .fetcher import HostFetcher
from .hosts import KNOWN_HOSTS, expand, resolve
from .stats import Heatmap, ProjectStat, Stats, WeekBucket, compute, project_family

__all__ = [
    '__version__',
    'Change',
    'ChangeMessage',
    'ChangeQuery',
    'ChangeStatus',
    'ReviewEvent',
    'ReviewerQuery',
    'GerritAPIClient',
    'HostFetcher',
    'KNOWN_HOSTS',
    'expand',
    'resolve',
    'Heatmap',
    'ProjectStat',
    'Stats',
    'WeekBucket',
    'compute',
    'project_family',
]
