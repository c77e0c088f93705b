"""
Tests for the SpaceX launch manifest client
HTTP traffic is intercepted with respx
"""
from __future__ import annotations

import sys
from pathlib import Path

import json
import httpx
import pytest
import respx

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.errors import SiteNotFound, UpstreamError, UpstreamFailure
from backend.spacex_client import Launch, LaunchSite, SpaceXClient

BASE_URL = 'https://spacex.test/v4'
PAD = '5e9e4502f509094188566f88'


@pytest.fixture
def client():
    client = SpaceXClient(base_url=BASE_URL + '/', timeout=2.0)
    yield client
    client.close()


class TestLaunchSite:
    """Test launch pad lookups"""

    @respx.mock
    def test_active_site(self, client):
        respx.get(f'{BASE_URL}/launchpads/{PAD}').respond(
            200, json={'id': PAD, 'status': 'active', 'name': 'KSC LC 39A'}
        )

        site = client.get_launch_site(PAD)
        assert site == LaunchSite(id=PAD, status='active')
        assert site.is_active

    @respx.mock
    def test_retired_site(self, client):
        respx.get(f'{BASE_URL}/launchpads/{PAD}').respond(
            200, json={'id': PAD, 'status': 'retired'}
        )

        assert not client.get_launch_site(PAD).is_active

    @respx.mock
    def test_unknown_site(self, client):
        respx.get(f'{BASE_URL}/launchpads/{PAD}').respond(404)

        with pytest.raises(SiteNotFound):
            client.get_launch_site(PAD)

    @respx.mock
    def test_server_error(self, client):
        respx.get(f'{BASE_URL}/launchpads/{PAD}').respond(503)

        with pytest.raises(UpstreamError) as exc_info:
            client.get_launch_site(PAD)
        assert '503' in exc_info.value.message

    @respx.mock
    def test_undecodable_body(self, client):
        respx.get(f'{BASE_URL}/launchpads/{PAD}').respond(200, text='<html>oops</html>')

        with pytest.raises(UpstreamError):
            client.get_launch_site(PAD)

    @respx.mock
    def test_missing_fields(self, client):
        respx.get(f'{BASE_URL}/launchpads/{PAD}').respond(200, json={'id': PAD})

        with pytest.raises(UpstreamError):
            client.get_launch_site(PAD)

    @respx.mock
    def test_timeout(self, client):
        respx.get(f'{BASE_URL}/launchpads/{PAD}').mock(
            side_effect=httpx.ConnectTimeout('timed out')
        )

        with pytest.raises(UpstreamFailure):
            client.get_launch_site(PAD, timeout=0.5)

    @respx.mock
    def test_connection_error(self, client):
        respx.get(f'{BASE_URL}/launchpads/{PAD}').mock(
            side_effect=httpx.ConnectError('connection refused')
        )

        with pytest.raises(UpstreamError):
            client.get_launch_site(PAD)


class TestUpcomingLaunches:
    """Test upcoming launch queries"""

    @respx.mock
    def test_upcoming_launches(self, client):
        route = respx.post(f'{BASE_URL}/launches/query').respond(200, json={
            'docs': [
                {'launchpad': PAD, 'date_unix': 1710460800, 'date_precision': 'day'},
                {'launchpad': PAD, 'date_unix': 1719792000, 'date_precision': 'quarter'},
            ],
            'totalDocs': 2,
        })

        launches = client.get_upcoming_launches(PAD)
        assert launches == [
            Launch(launchpad_id=PAD, date_unix=1710460800, date_precision='day'),
            Launch(launchpad_id=PAD, date_unix=1719792000, date_precision='quarter'),
        ]

        body = json.loads(route.calls[0].request.content)
        assert body['query'] == {'upcoming': True, 'launchpad': PAD}
        assert body['options']['sort'] == {'date_unix': 'asc'}
        assert body['options']['select'] == ['launchpad', 'date_unix', 'date_precision']

    @respx.mock
    def test_no_upcoming_launches(self, client):
        respx.post(f'{BASE_URL}/launches/query').respond(200, json={'docs': []})

        assert client.get_upcoming_launches(PAD) == []

    @respx.mock
    def test_query_failure(self, client):
        respx.post(f'{BASE_URL}/launches/query').respond(500)

        with pytest.raises(UpstreamError):
            client.get_upcoming_launches(PAD)

    @respx.mock
    def test_malformed_docs(self, client):
        respx.post(f'{BASE_URL}/launches/query').respond(
            200, json={'docs': [{'launchpad': PAD, 'date_unix': 'soon'}]}
        )

        with pytest.raises(UpstreamError):
            client.get_upcoming_launches(PAD)

    @respx.mock
    def test_read_timeout(self, client):
        respx.post(f'{BASE_URL}/launches/query').mock(
            side_effect=httpx.ReadTimeout('read timed out')
        )

        with pytest.raises(UpstreamError):
            client.get_upcoming_launches(PAD)
