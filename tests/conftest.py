import json
from pathlib import Path

import pytest


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        if body is None:
            body = {}
        if isinstance(body, str):
            self.text = body
        else:
            self.text = json.dumps(body)

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Records every call instead of talking to the network."""

    def __init__(self, response=None):
        self.response = response or FakeResponse()
        self.calls = []
        self.closed = False

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        return self.response

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self.response

    def close(self):
        self.closed = True


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def jpeg_file(tmp_path) -> Path:
    path = tmp_path / "dragon.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0" + b"\x00" * 16)
    return path
