import httpx
import pytest

from core.config import Config, Targets, parse_target


class RecordingLogger:
    """RequestLogger that keeps every event for assertions."""

    def __init__(self):
        self.routes = []
        self.attributions = []
        self.mirrored = []
        self.mirror_errors = []
        self.errors = []
        self.access = []

    def log_route(self, route, method, url):
        self.routes.append((route, method, url))

    def log_attribution(self, request_uri):
        self.attributions.append(request_uri)

    def log_mirror(self, url, status):
        self.mirrored.append((url, status))

    def log_mirror_error(self, url, error):
        self.mirror_errors.append((url, error))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))

    def log_access(self, method, path, status, duration_ms, *, client=None):
        self.access.append((method, path, status, client))


class FakeUpstreams:
    """MockTransport handler standing in for the CDN, Tracking API and mirror."""

    def __init__(self, mirror_error: Exception | None = None):
        self.requests: list[httpx.Request] = []
        self.mirror_error = mirror_error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "mirror.example.com":
            if self.mirror_error is not None:
                raise self.mirror_error
            return httpx.Response(202, content=b"mirrored")
        if host == "cdn.example.com":
            return httpx.Response(
                200,
                headers={"content-type": "application/json", "x-served-by": "cdn"},
                content=b'{"settings": true}',
            )
        return httpx.Response(
            200,
            headers={"content-type": "application/json", "x-served-by": "api"},
            content=b'{"success": true}',
        )

    def to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def config():
    config = Config()
    config.upstreams.cdn_url = "http://cdn.example.com"
    config.upstreams.tracking_api_url = "http://api.example.com"
    return config


@pytest.fixture
def mirrored_config(config):
    config.mirror.url = "http://mirror.example.com"
    return config


@pytest.fixture
def targets():
    return Targets(
        cdn=parse_target("http://cdn.example.com"),
        tracking_api=parse_target("http://api.example.com"),
    )


@pytest.fixture
def fake_upstreams():
    return FakeUpstreams()
