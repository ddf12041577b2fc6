"""Concurrent fetching of change and review activity across Gerrit hosts."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Sequence, Tuple, TypeVar

from .api_client import GerritAPIClient
from .errors import HostFetchError
from .models import Change, ChangeQuery, ReviewEvent, ReviewerQuery

T = TypeVar('T')


class HostFetcher:
    """Fans a query out to every configured Gerrit host and merges the results."""

    def __init__(self, hosts: Sequence[Tuple[str, str]], username: str = None,
                 password: str = None, timeout: float = 30.0, max_workers: int = None):
        """Initialize the fetcher.

        Args:
            hosts: Ordered ``(alias, base_url)`` pairs
            username: HTTP Basic auth username shared by all hosts
            password: HTTP Basic auth password shared by all hosts
            timeout: Per-request timeout in seconds
            max_workers: Thread pool size (defaults to one thread per host)
        """
        self.hosts = list(hosts)
        self.username = username
        self.password = password
        self.timeout = timeout
        self.max_workers = max_workers or max(len(self.hosts), 1)

    @property
    def prefix_projects(self) -> bool:
        """Whether project names get an ``alias::`` prefix."""
        return len(self.hosts) > 1

    def make_client(self, base_url: str) -> GerritAPIClient:
        return GerritAPIClient(base_url, self.username, self.password, timeout=self.timeout)

    def fetch_changes(self, query: ChangeQuery) -> List[Change]:
        """Fetch changes from all hosts, sorted chronologically when combined.

        Raises:
            HostFetchError: If the fetch fails for any host
        """
        changes = self._fetch_all(lambda client: client.fetch_changes(query), 'changes')
        if self.prefix_projects:
            changes.sort(key=lambda c: c.activity_time)
        return changes

    def fetch_review_events(self, query: ReviewerQuery) -> List[ReviewEvent]:
        """Fetch review events from all hosts, sorted chronologically when combined.

        Raises:
            HostFetchError: If the fetch fails for any host
        """
        events = self._fetch_all(lambda client: client.fetch_review_events(query), 'review events')
        if self.prefix_projects:
            events.sort(key=lambda e: e.timestamp)
        return events

    def _fetch_all(self, fetch: Callable[[GerritAPIClient], List[T]], label: str) -> List[T]:
        """Run ``fetch`` once per host in parallel and concatenate the results.

        Each task owns its client and result list. The first failure is
        raised right away; tasks still running are left to finish on their
        own and whatever they return is dropped.
        """
        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        results: List[T] = []
        try:
            futures = {
                executor.submit(self._fetch_host, base_url, fetch): alias
                for alias, base_url in self.hosts
            }
            for future in as_completed(futures):
                alias = futures[future]
                try:
                    items = future.result()
                except Exception as e:
                    logging.error(f"Fetching {label} from {alias} failed: {e}")
                    raise HostFetchError(alias, e) from e

                logging.info(f"  {len(items)} {label} from {alias}")
                if self.prefix_projects:
                    for item in items:
                        item.project = f"{alias}::{item.project}"
                results.extend(items)
        finally:
            executor.shutdown(wait=False)

        return results

    def _fetch_host(self, base_url: str, fetch: Callable[[GerritAPIClient], List[T]]) -> List[T]:
        client = self.make_client(base_url)
        return fetch(client)
