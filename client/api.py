"""HTTP client for the Space API."""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

# kind -> (single envelope, collection envelope)
ENVELOPES = {
    'sns': ('user', 'users'),
    'spaces': ('space', 'spaces'),
    'shops': ('shop', 'shops'),
    'lend-items': ('item', 'items'),
    'requests': ('request', 'requests'),
    'hangouts': ('hangout', 'hangouts'),
}

class NetworkError(Exception):
    """Raised when a request fails or the server answers with an error status"""
    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)

    @property
    def not_found(self) -> bool:
        return self.status == 404

class SpaceAPIClient:
    """Client for the resource endpoints."""

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None, timeout: float = 10):
        """Initialize API client.

        Args:
            base_url: Server root, e.g. http://localhost:3000. Defaults to api_base_url from settings.
            session: Optional requests session
            timeout: Request timeout in seconds
        """
        if base_url is None:
            from config import settings_conf
            base_url = settings_conf['api_base_url']

        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Send a request and return the decoded body.

        Raises:
            NetworkError: If the request fails or the status is not 2xx
        """
        url = f"{self.base_url}{path}"

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkError(f"Request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok:
            message = body.get('error') if isinstance(body, dict) else None
            raise NetworkError(message or f"HTTP {response.status_code}", response.status_code)

        return body

    @staticmethod
    def _path(kind: str, key: Optional[str] = None) -> str:
        if kind not in ENVELOPES:
            raise ValueError(f"Unknown resource kind: {kind}")
        path = f"/api/{kind}"
        if key is not None:
            path += f"/{quote(str(key), safe='')}"
        return path

    # Generic resource operations

    def list_resources(self, kind: str, space_id: Optional[str] = None) -> Dict[str, Any]:
        """List a kind; returns the whole envelope including `count`."""
        params = {'spaceId': space_id} if space_id else None
        return self._request('GET', self._path(kind), params=params)

    def get_resource(self, kind: str, key: str) -> Dict[str, Any]:
        return self._request('GET', self._path(kind, key))[ENVELOPES[kind][0]]

    def upsert_resource(self, kind: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', self._path(kind), json=payload)[ENVELOPES[kind][0]]

    def patch_resource(self, kind: str, key: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PATCH', self._path(kind, key), json=fields)[ENVELOPES[kind][0]]

    def delete_resource(self, kind: str, key: str) -> Dict[str, Any]:
        return self._request('DELETE', self._path(kind, key))

    # SNS users

    def get_user(self, email: str) -> Dict[str, Any]:
        return self.get_resource('sns', email)

    def list_users(self) -> List[Dict[str, Any]]:
        return self.list_resources('sns')['users']

    def upsert_user(self, email: str, sns_id: str, **fields) -> Dict[str, Any]:
        return self.upsert_resource('sns', {'email': email, 'sns_id': sns_id, **fields})

    def patch_user(self, email: str, **fields) -> Dict[str, Any]:
        return self.patch_resource('sns', email, fields)

    # Spaces

    def get_space(self, space_id: str) -> Dict[str, Any]:
        return self.get_resource('spaces', space_id)

    def list_spaces(self) -> List[Dict[str, Any]]:
        return self.list_resources('spaces')['spaces']

    def upsert_space(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.upsert_resource('spaces', payload)

    def patch_space(self, space_id: str, **fields) -> Dict[str, Any]:
        return self.patch_resource('spaces', space_id, fields)

    def delete_space(self, space_id: str) -> Dict[str, Any]:
        return self.delete_resource('spaces', space_id)

    def list_space_shops(self, space_id: str) -> Dict[str, Any]:
        return self._request('GET', f"{self._path('spaces', space_id)}/shops")

    def health(self) -> Dict[str, Any]:
        return self._request('GET', '/health')
