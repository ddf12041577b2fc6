"""Data models for Gerrit change and review activity."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from .timestamps import parse_gerrit_timestamp


class ChangeStatus(Enum):
    """Lifecycle status of a Gerrit change, valued as on the wire."""
    NEW = 'NEW'
    MERGED = 'MERGED'
    ABANDONED = 'ABANDONED'

    @property
    def query_predicate(self) -> str:
        """Token used in an ``is:`` search predicate."""
        return _STATUS_PREDICATES[self]


_STATUS_PREDICATES = {
    ChangeStatus.NEW: 'open',
    ChangeStatus.MERGED: 'merged',
    ChangeStatus.ABANDONED: 'abandoned',
}


@dataclass
class ChangeMessage:
    """A message posted on a change."""
    author_email: Optional[str]
    date: datetime

    @classmethod
    def from_json(cls, data: Dict) -> 'ChangeMessage':
        if not isinstance(data, dict):
            raise ValueError(f"message must be an object, got {type(data).__name__}")
        author = data.get('author') or {}
        if not isinstance(author, dict):
            raise ValueError(f"message author must be an object, got {author!r}")
        email = author.get('email')
        if email is not None and not isinstance(email, str):
            raise ValueError(f"message author email must be a string, got {email!r}")
        return cls(author_email=email, date=parse_gerrit_timestamp(data.get('date')))


@dataclass
class Change:
    """One element of a ``/changes/`` result page."""
    project: str
    status: ChangeStatus
    updated: datetime
    submitted: Optional[datetime] = None
    insertions: int = 0
    deletions: int = 0
    more_changes: Optional[bool] = None
    messages: List[ChangeMessage] = field(default_factory=list)

    @property
    def activity_time(self) -> datetime:
        """Submission time, or the last update for unsubmitted changes."""
        return self.submitted if self.submitted is not None else self.updated

    @classmethod
    def from_json(cls, data: Dict) -> 'Change':
        """Build a Change from decoded JSON, ignoring unknown fields.

        Args:
            data: One ChangeInfo object from the Gerrit REST API

        Returns:
            The parsed Change

        Raises:
            ValueError: If a required field is missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError(f"change entry must be an object, got {type(data).__name__}")

        project = data.get('project')
        if not isinstance(project, str):
            raise ValueError(f"change is missing a string 'project' field: {project!r}")

        try:
            status = ChangeStatus(data.get('status'))
        except ValueError:
            raise ValueError(f"unknown change status {data.get('status')!r}") from None

        submitted = data.get('submitted')
        more_changes = data.get('_more_changes')
        if more_changes is not None and not isinstance(more_changes, bool):
            raise ValueError(f"'_more_changes' must be a boolean, got {more_changes!r}")

        messages = data.get('messages') or []
        if not isinstance(messages, list):
            raise ValueError(f"'messages' must be an array, got {type(messages).__name__}")

        return cls(
            project=project,
            status=status,
            updated=parse_gerrit_timestamp(data.get('updated')),
            submitted=parse_gerrit_timestamp(submitted) if submitted is not None else None,
            insertions=_line_count(data, 'insertions'),
            deletions=_line_count(data, 'deletions'),
            more_changes=more_changes,
            messages=[ChangeMessage.from_json(m) for m in messages],
        )


def _line_count(data: Dict, key: str) -> int:
    value = data.get(key, 0)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"'{key}' must be a non-negative integer, got {value!r}")
    return value


@dataclass
class ReviewEvent:
    """A change the user reviewed but did not author."""
    timestamp: datetime
    project: str


@dataclass(frozen=True)
class ChangeQuery:
    """Search for changes owned by an account."""
    owner: str
    status: Optional[ChangeStatus] = None
    after: Optional[date] = None

    def with_status(self, status: ChangeStatus) -> 'ChangeQuery':
        return replace(self, status=status)

    def with_after(self, after: date) -> 'ChangeQuery':
        return replace(self, after=after)

    def to_query_string(self) -> str:
        parts = [f"owner:{self.owner}"]
        if self.status is not None:
            parts.append(f"is:{self.status.query_predicate}")
        if self.after is not None:
            parts.append(f"after:{self.after.strftime('%Y-%m-%d')}")
        return ' '.join(parts)


@dataclass(frozen=True)
class ReviewerQuery:
    """Search for changes reviewed by an account and owned by someone else."""
    reviewer: str
    after: Optional[date] = None

    def with_after(self, after: date) -> 'ReviewerQuery':
        return replace(self, after=after)

    def to_query_string(self) -> str:
        parts = [f"reviewer:{self.reviewer}", f"-owner:{self.reviewer}"]
        if self.after is not None:
            parts.append(f"after:{self.after.strftime('%Y-%m-%d')}")
        return ' '.join(parts)
