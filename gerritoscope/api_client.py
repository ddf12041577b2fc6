"""Gerrit REST client for making requests and handling pagination."""

import json
import logging
from typing import Callable, Dict, List, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import __version__
from .errors import ProtocolError, TransportError
from .models import Change, ChangeQuery, ReviewEvent, ReviewerQuery

# Prepended by Gerrit to every JSON response so it is not valid script
XSSI_PREFIX = ")]}'\n"

DEFAULT_PAGE_SIZE = 500

T = TypeVar('T')


def strip_xssi_prefix(text: str) -> str:
    """Remove the anti-XSSI prefix from a Gerrit response body.

    Raises:
        ValueError: If the body does not start with the prefix
    """
    if not text.startswith(XSSI_PREFIX):
        raise ValueError(f"response is missing the Gerrit XSSI prefix; got {text[:12]!r}")
    return text[len(XSSI_PREFIX):]


class GerritAPIClient:
    """Handles Gerrit REST requests, response unwrapping and pagination."""

    def __init__(self, base_url: str, username: str = None, password: str = None,
                 timeout: float = 30.0, page_size: int = DEFAULT_PAGE_SIZE):
        """Initialize the Gerrit API client.

        Args:
            base_url: Root URL of the Gerrit instance
            username: HTTP Basic auth username (for private instances)
            password: Gerrit HTTP password, used together with username
            timeout: Per-request timeout in seconds
            page_size: Number of changes requested per page
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.page_size = page_size
        self.session = requests.Session()

        # Failures are surfaced to the caller as-is
        adapter = HTTPAdapter(max_retries=Retry(total=0))
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': f'gerritoscope/{__version__}',
        })

        if username and password:
            self.session.auth = (username, password)
            logging.debug(f"Using HTTP Basic auth as {username} for {self.base_url}")

    @property
    def changes_url(self) -> str:
        return f"{self.base_url}/changes/"

    def fetch_changes(self, query: ChangeQuery) -> List[Change]:
        """Fetch every change matching an owner query.

        Args:
            query: The change query

        Returns:
            All matching changes in server order
        """
        params = {'q': query.to_query_string()}
        changes = self._get_paginated(params, lambda page: page)
        logging.debug(f"Fetched {len(changes)} changes from {self.base_url}")
        return changes

    def fetch_review_events(self, query: ReviewerQuery) -> List[ReviewEvent]:
        """Fetch one review event per change the reviewer reviewed.

        The event is dated by the reviewer's earliest message on the change,
        falling back to the change's last update when none of its messages
        were authored by the reviewer.

        Args:
            query: The reviewer query

        Returns:
            Review events in server order
        """
        params = {'q': query.to_query_string(), 'o': 'MESSAGES'}

        def to_events(page: List[Change]) -> List[ReviewEvent]:
            return [review_event_for(change, query.reviewer) for change in page]

        events = self._get_paginated(params, to_events)
        logging.debug(f"Fetched {len(events)} review events from {self.base_url}")
        return events

    def _get_paginated(self, params: Dict, convert: Callable[[List[Change]], List[T]]) -> List[T]:
        """Follow ``_more_changes`` continuation until the result set is exhausted.

        Args:
            params: Query parameters other than ``n`` and ``start``
            convert: Maps each page of changes to the items to accumulate

        Returns:
            Converted items from all pages, in request order
        """
        results: List[T] = []
        start = 0

        while True:
            page = self.get_page(params, start)
            results.extend(convert(page))

            # Gerrit only flags the last element of a page
            more = bool(page) and bool(page[-1].more_changes)
            if not more:
                break

            # The server may return fewer than requested
            start += len(page)

        return results

    def get_page(self, params: Dict, start: int) -> List[Change]:
        """Fetch and decode a single page of ``/changes/``.

        Args:
            params: Query parameters other than ``n`` and ``start``
            start: Offset of the first change to return

        Returns:
            The changes on the page

        Raises:
            TransportError: On network failure or a non-2xx status
            ProtocolError: On a missing XSSI prefix or undecodable payload
        """
        url = self.changes_url
        request_params = dict(params, n=self.page_size, start=start)
        logging.debug(f"Fetching {url} start={start} q={params.get('q')!r}")

        try:
            response = self.session.get(url, params=request_params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(url, reason=str(e)) from e

        if not 200 <= response.status_code < 300:
            try:
                body = response.text
            except Exception:
                body = ''
            raise TransportError(url, status_code=response.status_code, body=body)

        try:
            payload = strip_xssi_prefix(response.text)
        except ValueError as e:
            raise ProtocolError(url, start, str(e)) from e

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ProtocolError(url, start, f"deserialising /changes/ page: {e}") from e

        if not isinstance(data, list):
            raise ProtocolError(url, start, f"expected a JSON array, got {type(data).__name__}")

        try:
            return [Change.from_json(item) for item in data]
        except ValueError as e:
            raise ProtocolError(url, start, f"deserialising /changes/ page: {e}") from e


def review_event_for(change: Change, reviewer: str) -> ReviewEvent:
    """Date a reviewed change by the reviewer's earliest message on it."""
    own_messages = [m.date for m in change.messages if m.author_email == reviewer]
    timestamp = min(own_messages) if own_messages else change.updated
    return ReviewEvent(timestamp=timestamp, project=change.project)
