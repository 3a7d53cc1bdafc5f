"""
Client for the deployed image-upload application's HTTP API.
"""
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union
from urllib.parse import quote

import requests

from api_client import BaseApiClient


ImageSource = Union[str, Path, Tuple[str, bytes]]


class CloudxImageApi:
    """
    Wraps the /api/image and /api/notification endpoints.

    Args:
        host: Public IP or DNS name of the application instance
        scheme: URL scheme (the application listens on plain HTTP)
        client: Pre-built BaseApiClient (tests)
    """

    def __init__(self, host: str, scheme: str = 'http', client: BaseApiClient = None):
        self.base_url = f"{scheme}://{host}"
        self._client = client or BaseApiClient(self.base_url)

    def get_instance_metadata(self) -> Dict[str, Any]:
        """Instance info served at the root path (region, AZ, private IP)."""
        return self._client.get('/').json()

    def list_images(self) -> List[Dict[str, Any]]:
        return self._client.get('/api/image').json()

    def get_image(self, image_id: Any) -> Dict[str, Any]:
        return self._client.get(f"/api/image/{image_id}").json()

    def upload_image(self, image: ImageSource) -> Dict[str, Any]:
        """
        Upload an image as multipart field 'upfile'.

        Args:
            image: File path, or a (filename, content) tuple

        Returns:
            Created image metadata (contains 'id')
        """
        if isinstance(image, tuple):
            filename, content = image
            response = self._client.post('/api/image', files={'upfile': (filename, content)})
        else:
            path = Path(image)
            with path.open('rb') as handle:
                response = self._client.post('/api/image', files={'upfile': (path.name, handle)})
        return response.json()

    def delete_image(self, image_id: Any) -> requests.Response:
        return self._client.delete(f"/api/image/{image_id}")

    def subscribe(self, email: str) -> str:
        """Subscribe an email to image event notifications; returns the response text."""
        return self._client.post(f"/api/notification/{quote(email, safe='@+')}").text

    def list_subscriptions(self) -> List[Dict[str, Any]]:
        return self._client.get('/api/notification').json()

    def download(self, url: str) -> requests.Response:
        """GET an absolute URL (e.g. a download link from a notification)."""
        return self._client.get(url, headers={'Accept': '*/*'})

    def close(self) -> None:
        self._client.close()
