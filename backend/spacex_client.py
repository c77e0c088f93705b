"""
SpaceX launch manifest client

Reads launch pad status and the upcoming launches scheduled at a pad.
Every failure is raised as a typed error: the booking pipeline treats an
unreachable or ambiguous manifest as "cannot confirm availability".
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from backend.errors import SiteNotFound, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://api.spacexdata.com/v4'
DEFAULT_TIMEOUT = 15.0
# the manifest API caps pages; one page is enough for a single pad
UPCOMING_LAUNCH_LIMIT = 10000


@dataclass(frozen=True)
class LaunchSite:
    """Launch pad as reported by the manifest"""
    id: str
    status: str

    @property
    def is_active(self) -> bool:
        return self.status == 'active'


@dataclass(frozen=True)
class Launch:
    """Upcoming external launch at a pad"""
    launchpad_id: str
    date_unix: int
    date_precision: str


class SpaceXClient:
    """HTTP client for the SpaceX v4 API"""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT,
                 http: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = http or httpx.Client(
            timeout=httpx.Timeout(timeout),
            headers={'Content-Type': 'application/json'},
        )

    def close(self) -> None:
        self.http.close()

    def _request(self, method: str, path: str, *, json: Optional[dict] = None,
                 timeout: Optional[float] = None) -> httpx.Response:
        url = f"{self.base_url}/{path}"
        try:
            return self.http.request(
                method, url, json=json,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except httpx.TimeoutException as e:
            raise UpstreamError(f"SpaceX request to {path} timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"SpaceX request to {path} failed: {e}") from e

    @staticmethod
    def _json(response: httpx.Response, path: str):
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"undecodable response from SpaceX {path}") from e

    def get_launch_site(self, site_id: str, timeout: Optional[float] = None) -> LaunchSite:
        """
        Fetch a launch pad

        Raises:
            SiteNotFound: If SpaceX does not know the pad
            UpstreamError: On any other non-200 answer or transport failure
        """
        path = f"launchpads/{site_id}"
        response = self._request('GET', path, timeout=timeout)

        if response.status_code == 404:
            raise SiteNotFound(f"launchpad {site_id} not found")
        if response.status_code != 200:
            logger.error("SpaceX returned %s for %s", response.status_code, path,
                         extra={'launchpad_id': site_id})
            raise UpstreamError(f"invalid status code from spacex: {response.status_code}")

        body = self._json(response, path)
        try:
            return LaunchSite(id=body['id'], status=body['status'])
        except (KeyError, TypeError) as e:
            raise UpstreamError(f"unexpected launchpad payload from SpaceX: missing {e}") from e

    def get_upcoming_launches(self, site_id: str, timeout: Optional[float] = None) -> List[Launch]:
        """
        List upcoming launches at a pad, earliest first

        Raises:
            UpstreamError: On a non-200 answer, transport failure or bad payload
        """
        path = 'launches/query'
        response = self._request('POST', path, json=self.upcoming_query(site_id),
                                 timeout=timeout)

        if response.status_code != 200:
            logger.error("SpaceX returned %s for %s", response.status_code, path,
                         extra={'launchpad_id': site_id})
            raise UpstreamError(f"invalid status code from spacex: {response.status_code}")

        body = self._json(response, path)
        try:
            return [
                Launch(
                    launchpad_id=doc['launchpad'],
                    date_unix=int(doc['date_unix']),
                    date_precision=doc['date_precision'],
                )
                for doc in body['docs']
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"unexpected launches payload from SpaceX: {e}") from e

    @staticmethod
    def upcoming_query(site_id: str) -> dict:
        """Query document for upcoming launches restricted to one pad"""
        return {
            'query': {
                'upcoming': True,
                'launchpad': site_id,
            },
            'options': {
                'select': ['launchpad', 'date_unix', 'date_precision'],
                'sort': {'date_unix': 'asc'},
                'limit': UPCOMING_LAUNCH_LIMIT,
            },
        }
