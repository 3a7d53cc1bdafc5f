"""
Base HTTP client used by the Mailtrap and application API clients.
Wraps a requests.Session with merged default configuration.
"""
from typing import Any, Dict, Optional

import requests

from logging_utils import log_http_call, log_safe


DEFAULT_TIMEOUT_SECONDS = 30


def merge_config(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Deep-merge two request configuration dicts.

    Nested dicts (e.g. headers) are merged key by key; other values in
    ``override`` replace those in ``base``. Neither input is modified and
    non-dict values (file handles included) are passed through as-is.
    """
    merged = {
        key: merge_config(value, None) if isinstance(value, dict) else value
        for key, value in base.items()
    }
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


class BaseApiClient:
    """
    Thin requests wrapper.

    Args:
        base_url: Prefix for relative request paths
        config: Default request kwargs (headers, timeout, params, ...)
    """

    base_params = {
        'headers': {
            'Content-Type': 'application/json',
            'Accept': '*/*'
        },
        'timeout': DEFAULT_TIMEOUT_SECONDS
    }

    def __init__(self, base_url: str = '', config: Dict[str, Any] = None, session: requests.Session = None):
        self.base_url = base_url.rstrip('/')
        self.default_config = merge_config(self.base_params, config)
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def build_url(self, url: str) -> str:
        if url.startswith(('http://', 'https://')) or not self.base_url:
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    def request(self, method: str, url: str, **config) -> requests.Response:
        """
        Send a request and raise for non-2xx responses.

        Raises:
            requests.HTTPError: On 4xx/5xx responses
            requests.RequestException: On transport failures
        """
        request_config = merge_config(self.default_config, config)

        # Let requests set the multipart boundary
        if request_config.get('files'):
            request_config['headers'].pop('Content-Type', None)

        full_url = self.build_url(url)
        try:
            response = self.session.request(method, full_url, **request_config)
        except requests.RequestException as e:
            log_http_call(method, full_url)
            log_safe("HTTP request failed", {'error': str(e), 'headers': request_config['headers']})
            raise

        log_http_call(method, full_url, response.status_code)
        response.raise_for_status()
        return response

    def get(self, url: str, **config) -> requests.Response:
        return self.request('GET', url, **config)

    def post(self, url: str, data: Any = None, **config) -> requests.Response:
        if data is not None:
            config['json' if isinstance(data, (dict, list)) else 'data'] = data
        return self.request('POST', url, **config)

    def put(self, url: str, data: Any = None, **config) -> requests.Response:
        if data is not None:
            config['json' if isinstance(data, (dict, list)) else 'data'] = data
        return self.request('PUT', url, **config)

    def patch(self, url: str, data: Any = None, **config) -> requests.Response:
        if data is not None:
            config['json' if isinstance(data, (dict, list)) else 'data'] = data
        return self.request('PATCH', url, **config)

    def delete(self, url: str, data: Any = None, **config) -> requests.Response:
        if data is not None:
            config['json' if isinstance(data, (dict, list)) else 'data'] = data
        return self.request('DELETE', url, **config)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
