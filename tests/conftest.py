"""
Pytest configuration and fixtures for the relay tests.

No test talks to Salesforce: `fake_sf` replaces requests.get/post inside the
http client with canned responses keyed by URL.
"""

import os
import sys
import pytest

# Add the project root (config.py, relay/) to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

TOKEN_URL = "https://login.example.com/services/oauth2/token"
INSTANCE_URL = "https://example.my.salesforce.com"
DUPLICATES_URL = "https://example.my.salesforce.com/services/apexrest/duplicados"
COMPOSITE_URL = INSTANCE_URL + "/services/data/v57.0/composite"
MAGICK_KEY = "magick-test-key"
LANDBOT_KEY = "landbot-test-key"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else repr(payload))

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSalesforce:
    """Canned upstream. Values are FakeResponse or an exception to raise."""

    def __init__(self):
        self.calls = []
        self.routes = {
            TOKEN_URL: FakeResponse(200, {"access_token": "tok-123", "instance_url": INSTANCE_URL}),
        }

    def on(self, url, response):
        self.routes[url] = response

    def _answer(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        resp = self.routes.get(url)
        if resp is None:
            return FakeResponse(404, {"message": "no route"})
        if isinstance(resp, Exception):
            raise resp
        return resp

    def get(self, url, **kwargs):
        return self._answer("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._answer("POST", url, **kwargs)

    def calls_to(self, url):
        return [c for c in self.calls if c[1] == url]


@pytest.fixture
def fake_sf(monkeypatch):
    from relay.services import http_client
    fake = FakeSalesforce()
    monkeypatch.setattr(http_client.requests, "get", fake.get)
    monkeypatch.setattr(http_client.requests, "post", fake.post)
    return fake


@pytest.fixture
def app(tmp_path):
    from relay import create_app
    from relay.utils.ratelimit import reset_buckets
    reset_buckets()
    app = create_app({
        "TESTING": True,
        "LOG_DIR": str(tmp_path / "logs"),
        "MAGICK_API_KEY": MAGICK_KEY,
        "LANDBOT_API_KEY": LANDBOT_KEY,
        "MAX_REQUESTS_PER_MIN": 1000,
        "SF_TOKEN_URL": TOKEN_URL,
        "SF_GRANT_TYPE": "password",
        "SF_CLIENT_ID": "cid",
        "SF_CLIENT_SECRET": "csecret",
        "SF_USERNAME": "relay@example.com",
        "SF_PASSWORD": "pw",
        "SF_INSTANCE_URL": INSTANCE_URL,
        "SF_DUPLICATES_ENDPOINT": DUPLICATES_URL,
        "SF_API_VERSION": "v57.0",
    })
    yield app
    reset_buckets()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def settings(app):
    from relay.services.salesforce import SalesforceSettings
    return SalesforceSettings.from_config(app.config)


@pytest.fixture
def read_audit(app):
    """Parsed lines of an audit file."""
    import json

    def _read(filename):
        path = os.path.join(app.config["LOG_DIR"], filename)
        if not os.path.exists(path):
            return []
        with open(path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
    return _read
