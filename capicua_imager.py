import logging
import os
from pathlib import Path
from typing import Optional, TypedDict
from uuid import uuid4

import requests
import requests.exceptions
from dotenv import dotenv_values

from image_source import UnsupportedInputError, resolve_source

BASE_URL = "https://img.capicua.org.es/api"
DASHBOARD_URL = "https://img.capicua.org.es/dashboard"

logger = logging.getLogger(__name__)

# network failures are raised by requests as-is
TransportError = requests.exceptions.RequestException

__all__ = [
    "BASE_URL",
    "CapicuaImager",
    "ConfigurationError",
    "DeleteResult",
    "Dimensions",
    "ImageRecord",
    "RemoteRequestError",
    "TransportError",
    "UnsupportedInputError",
]


class Dimensions(TypedDict):
    width: int
    height: int


class ImageRecord(TypedDict):
    id: str
    name: str
    size: int
    contentType: str
    dimensions: Dimensions


class DeleteResult(TypedDict):
    deleted: bool


class ConfigurationError(ValueError):
    pass


class RemoteRequestError(Exception):
    """Raised for any non-2xx answer from the image API."""

    def __init__(self, message: str, status_code: int, body: str, operation: str):
        self.status_code = status_code
        self.body = body
        self.operation = operation
        super().__init__(message)


def redact_token(token):
    if len(token) <= 12:
        return f"{token[:3]}..."
    return f"{token[:6]}...{token[-6:]}"


def is_success(response):
    return 200 <= response.status_code < 300


def on_off(flag):
    return "on" if flag else "off"


class CapicuaImager:
    """
    Client for the Capicua image API.

    Example:
        imager = CapicuaImager("your-api-token")
        record = imager.upload_image("photo.jpg", compress=False)
        imager.get_image_info(record["id"])
        imager.delete_image(record["id"])
    """

    def __init__(self, api_token: Optional[str], base_url: str = BASE_URL, timeout: float = 30,
                 session: Optional[requests.Session] = None):
        if not isinstance(api_token, str) or not api_token.strip():
            raise ConfigurationError(f"CapicuaImager requires a token, generate yours here: {DASHBOARD_URL}")
        self._api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        logger.debug(f"[Capicua] client ready for {self.base_url} (token {redact_token(api_token)})")

    @classmethod
    def from_env(cls, env_file: Path = Path("./.env"), session: Optional[requests.Session] = None):
        """Build a client from CAPICUA_* values in a .env file or the process environment."""
        env_values = {**os.environ, **{k: v for k, v in dotenv_values(env_file).items() if v}}
        token = env_values.get("CAPICUA_TOKEN")
        if not token:
            raise ConfigurationError(f"CAPICUA_TOKEN must be defined in {env_file} or the environment")
        base_url = env_values.get("CAPICUA_BASE_URL") or BASE_URL
        try:
            timeout = float(env_values.get("CAPICUA_TIMEOUT") or 30)
        except ValueError as e:
            raise ConfigurationError(f"CAPICUA_TIMEOUT must be a number of seconds: {e}") from e
        return cls(token, base_url=base_url, timeout=timeout, session=session)

    def close(self):
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def headers(self):
        return {"Authorization": self._api_token}

    def upload_image(self, source, compress: bool = True, webp: bool = False) -> ImageRecord:
        """
        Upload an image and return the stored image details.

        `source` may be a path, a file:// URI, raw bytes, a binary file object
        or a data: URI. The file is always sent as `<uuid>.jpg`.
        """
        payload = resolve_source(source)
        image_name = f"{uuid4()}.jpg"

        if payload.content_type:
            file_field = (image_name, payload.data, payload.content_type)
        else:
            file_field = (image_name, payload.data)
        files = {"file": file_field}
        data = {"compressImage": on_off(compress), "webpImage": on_off(webp)}

        logger.debug(f"[Capicua] uploading {payload.origin} as {image_name} "
                     f"(compress={data['compressImage']}, webp={data['webpImage']})")
        response = self.session.post(f"{self.base_url}/file/upload", files=files, data=data,
                                     headers=self.headers, timeout=self.timeout)

        if not is_success(response):
            raise RemoteRequestError(f"Upload failed: ({response.status_code}) {response.text}",
                                     response.status_code, response.text, "upload")
        return response.json()

    def get_image_info(self, image_id: str) -> ImageRecord:
        return self._get(f"file/info/{self._check_id(image_id)}", "GetImageInfo")

    def delete_image(self, image_id: str) -> DeleteResult:
        # the API exposes deletion as a GET
        return self._get(f"file/delete/{self._check_id(image_id)}", "DeleteImage")

    @staticmethod
    def _check_id(image_id):
        if not image_id:
            raise ValueError("image_id must be a non-empty string")
        return image_id

    def _get(self, path, operation):
        logger.debug(f"[Capicua] GET /{path}")
        response = self.session.get(f"{self.base_url}/{path}", headers=self.headers, timeout=self.timeout)

        if not is_success(response):
            logger.warning(f"[Capicua] {operation} returned {response.status_code}: {response.text}")
            raise RemoteRequestError(f"{operation} failed with status: {response.status_code}",
                                     response.status_code, response.text, operation)
        return response.json()
