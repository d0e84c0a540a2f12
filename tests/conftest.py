"""Shared fixtures: in-memory store, scratch upload dirs, generated images."""

import io

import pytest
from PIL import Image

from config import Config
from db_meta import DB
from db_main import PostStore


class FakeClock:
    """Settable stand-in for time.time."""

    def __init__(self, now=1_700_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class StubCsrf:
    def __init__(self, ok=True):
        self.ok = ok
        self.calls = []

    def verify(self, token):
        self.calls.append(token)
        return self.ok and bool(token)


def image_bytes(fmt="PNG", size=(800, 400), mode="RGB", color=(200, 30, 30)):
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def conf(tmp_path):
    uploads = tmp_path / "uploads"
    thumbs = tmp_path / "thumbs"
    uploads.mkdir()
    thumbs.mkdir()
    return Config(upload_dir=str(uploads), thumb_dir=str(thumbs), secret_key="test-secret")


@pytest.fixture
def store():
    return PostStore(DB("sqlite://").create_test_db())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def csrf():
    return StubCsrf()
