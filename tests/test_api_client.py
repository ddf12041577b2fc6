"""
Unit tests for the Gerrit API client
"""

import json
import math
import pytest
import requests
from datetime import datetime, timezone
from unittest.mock import Mock

from gerritoscope.api_client import (
    DEFAULT_PAGE_SIZE, XSSI_PREFIX, GerritAPIClient, strip_xssi_prefix
)
from gerritoscope.errors import ProtocolError, TransportError
from gerritoscope.models import ChangeQuery, ChangeStatus, ReviewerQuery


def _change(n, more=False, **extra):
    data = {
        'project': f'project-{n}',
        'status': 'MERGED',
        'updated': '2024-06-11 08:00:00.000000000',
        'submitted': '2024-06-10 12:30:00.000000000',
        'insertions': n,
        'deletions': 0,
    }
    if more:
        data['_more_changes'] = True
    data.update(extra)
    return data


def _response(payload, status_code=200, prefix=XSSI_PREFIX):
    response = Mock()
    response.status_code = status_code
    response.text = prefix + (payload if isinstance(payload, str) else json.dumps(payload))
    return response


class FakeGerrit:
    """Serves a fixed list of changes in pages, like /changes/ does."""

    def __init__(self, total, page_size):
        self.changes = [_change(i) for i in range(total)]
        self.page_size = page_size
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append(dict(params))
        start = params['start']
        page = [dict(c) for c in self.changes[start:start + self.page_size]]
        if page and start + len(page) < len(self.changes):
            page[-1]['_more_changes'] = True
        return _response(page)


class TestStripXssiPrefix:
    """Test cases for XSSI prefix handling."""

    def test_strip_ok(self):
        raw = ")]}'\n[{\"id\":\"foo\"}]"
        assert strip_xssi_prefix(raw) == "[{\"id\":\"foo\"}]"

    def test_missing_prefix(self):
        with pytest.raises(ValueError, match='XSSI'):
            strip_xssi_prefix("[{\"id\":\"foo\"}]")

    def test_prefix_without_newline(self):
        with pytest.raises(ValueError):
            strip_xssi_prefix(")]}'[]")


class TestClientInitialization:
    """Test cases for GerritAPIClient construction."""

    def test_trailing_slash_stripped(self):
        client = GerritAPIClient('https://gerrit.example.com/')
        assert client.base_url == 'https://gerrit.example.com'
        assert client.changes_url == 'https://gerrit.example.com/changes/'

    def test_basic_auth(self):
        client = GerritAPIClient('https://gerrit.example.com', 'alice', 'secret')
        assert client.session.auth == ('alice', 'secret')

    def test_no_auth_without_password(self):
        client = GerritAPIClient('https://gerrit.example.com', 'alice', None)
        assert client.session.auth is None

    def test_retries_disabled(self):
        """Test that the HTTP adapter does not retry failed requests."""
        client = GerritAPIClient('https://gerrit.example.com')
        adapter = client.session.get_adapter('https://gerrit.example.com/changes/')
        assert adapter.max_retries.total == 0


class TestPagination:
    """Test cases for _more_changes pagination."""

    @pytest.mark.parametrize('total,page_size', [(0, 3), (1, 3), (3, 3), (7, 3), (9, 3), (10, 4)])
    def test_fetches_every_change_once(self, total, page_size):
        """Test request count and result completeness across page layouts."""
        client = GerritAPIClient('https://gerrit.example.com', page_size=page_size)
        server = FakeGerrit(total, page_size)
        client.session = Mock()
        client.session.get = Mock(side_effect=server.get)

        changes = client.fetch_changes(ChangeQuery('alice'))

        assert [c.project for c in changes] == [f'project-{i}' for i in range(total)]
        assert len(server.calls) == max(1, math.ceil(total / page_size))

    def test_request_parameters(self):
        """Test q, n and start parameters for a change query."""
        client = GerritAPIClient('https://gerrit.example.com')
        client.session = Mock()
        client.session.get = Mock(return_value=_response([_change(1)]))

        query = ChangeQuery('alice@example.com').with_status(ChangeStatus.MERGED)
        client.fetch_changes(query)

        args, kwargs = client.session.get.call_args
        assert args[0] == 'https://gerrit.example.com/changes/'
        assert kwargs['params'] == {
            'q': 'owner:alice@example.com is:merged',
            'n': DEFAULT_PAGE_SIZE,
            'start': 0,
        }
        assert kwargs['timeout'] == 30.0

    def test_offset_advances_by_received_count(self):
        """Test that start advances by the number of changes actually returned."""
        client = GerritAPIClient('https://gerrit.example.com')
        client.session = Mock()
        client.session.get = Mock(side_effect=[
            _response([_change(0), _change(1, more=True)]),
            _response([_change(2)]),
        ])

        changes = client.fetch_changes(ChangeQuery('alice'))

        assert len(changes) == 3
        starts = [c.kwargs['params']['start'] for c in client.session.get.call_args_list]
        assert starts == [0, 2]

    def test_flag_only_checked_on_last_element(self):
        """Test that a flag on a non-final element does not continue pagination."""
        client = GerritAPIClient('https://gerrit.example.com')
        client.session = Mock()
        client.session.get = Mock(return_value=_response([_change(0, more=True), _change(1)]))

        changes = client.fetch_changes(ChangeQuery('alice'))

        assert len(changes) == 2
        assert client.session.get.call_count == 1

    def test_empty_page_stops(self):
        """Test that an empty page ends pagination."""
        client = GerritAPIClient('https://gerrit.example.com')
        client.session = Mock()
        client.session.get = Mock(side_effect=[
            _response([_change(0, more=True)]),
            _response([]),
        ])

        changes = client.fetch_changes(ChangeQuery('alice'))

        assert len(changes) == 1
        assert client.session.get.call_count == 2


class TestReviewEvents:
    """Test cases for fetch_review_events."""

    def test_requests_messages(self):
        """Test that reviewer pages request message expansion."""
        client = GerritAPIClient('https://gerrit.example.com')
        client.session = Mock()
        client.session.get = Mock(return_value=_response([]))

        client.fetch_review_events(ReviewerQuery('alice@example.com'))

        params = client.session.get.call_args.kwargs['params']
        assert params['o'] == 'MESSAGES'
        assert params['q'] == 'reviewer:alice@example.com -owner:alice@example.com'

    def test_earliest_own_message(self):
        """Test that the event uses the reviewer's earliest message."""
        change = _change(1, status='NEW', messages=[
            {'author': {'email': 'bob@example.com'}, 'date': '2024-05-01 09:00:00.000000000'},
            {'author': {'email': 'alice@example.com'}, 'date': '2024-05-03 09:00:00.000000000'},
            {'author': {'email': 'alice@example.com'}, 'date': '2024-05-02 09:00:00.000000000'},
        ])
        del change['submitted']
        client = GerritAPIClient('https://gerrit.example.com')
        client.session = Mock()
        client.session.get = Mock(return_value=_response([change]))

        events = client.fetch_review_events(ReviewerQuery('alice@example.com'))

        assert len(events) == 1
        assert events[0].project == 'project-1'
        assert events[0].timestamp == datetime(2024, 5, 2, 9, tzinfo=timezone.utc)

    def test_falls_back_to_updated(self):
        """Test fallback to the change's updated time without own messages."""
        change = _change(1, messages=[
            {'author': {'email': 'bob@example.com'}, 'date': '2024-05-01 09:00:00.000000000'},
            {'date': '2024-05-01 10:00:00.000000000'},
        ])
        client = GerritAPIClient('https://gerrit.example.com')
        client.session = Mock()
        client.session.get = Mock(return_value=_response([change]))

        events = client.fetch_review_events(ReviewerQuery('alice@example.com'))

        assert events[0].timestamp == datetime(2024, 6, 11, 8, tzinfo=timezone.utc)

    def test_paginates(self):
        """Test that reviewer queries follow continuation too."""
        client = GerritAPIClient('https://gerrit.example.com')
        client.session = Mock()
        client.session.get = Mock(side_effect=[
            _response([_change(0, more=True)]),
            _response([_change(1)]),
        ])

        events = client.fetch_review_events(ReviewerQuery('alice'))

        assert [e.project for e in events] == ['project-0', 'project-1']


class TestErrorHandling:
    """Test cases for transport and protocol errors."""

    @pytest.fixture
    def client(self):
        client = GerritAPIClient('https://gerrit.example.com')
        client.session = Mock()
        return client

    def test_http_error(self, client):
        """Test that non-2xx responses raise TransportError with status, URL and body."""
        client.session.get = Mock(return_value=_response('Not found', status_code=404, prefix=''))

        with pytest.raises(TransportError) as exc_info:
            client.fetch_changes(ChangeQuery('alice'))

        err = exc_info.value
        assert err.status_code == 404
        assert err.url == 'https://gerrit.example.com/changes/'
        assert 'Not found' in str(err)
        assert '404' in str(err)

    def test_network_error(self, client):
        """Test that request exceptions become TransportError."""
        client.session.get = Mock(side_effect=requests.exceptions.ConnectionError('Network error'))

        with pytest.raises(TransportError) as exc_info:
            client.fetch_changes(ChangeQuery('alice'))

        assert exc_info.value.status_code is None
        assert 'Network error' in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)

    def test_missing_prefix(self, client):
        """Test that a body without the XSSI prefix is a protocol error."""
        client.session.get = Mock(return_value=_response([_change(1)], prefix=''))

        with pytest.raises(ProtocolError) as exc_info:
            client.fetch_changes(ChangeQuery('alice'))

        assert exc_info.value.start == 0
        assert 'XSSI' in str(exc_info.value)

    def test_invalid_json(self, client):
        """Test that undecodable JSON is a protocol error."""
        client.session.get = Mock(return_value=_response('[{"project": '))

        with pytest.raises(ProtocolError, match='start=0'):
            client.fetch_changes(ChangeQuery('alice'))

    def test_non_array_payload(self, client):
        """Test that a JSON object payload is a protocol error."""
        client.session.get = Mock(return_value=_response({'project': 'x'}))

        with pytest.raises(ProtocolError):
            client.fetch_changes(ChangeQuery('alice'))

    def test_bad_timestamp_reports_offset(self, client):
        """Test that a malformed timestamp on a later page reports its offset and value."""
        client.session.get = Mock(side_effect=[
            _response([_change(0), _change(1, more=True)]),
            _response([_change(2, updated='2024/06/11')]),
        ])

        with pytest.raises(ProtocolError) as exc_info:
            client.fetch_changes(ChangeQuery('alice'))

        assert exc_info.value.start == 2
        assert '2024/06/11' in str(exc_info.value)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
