import requests

class HttpError(Exception):
    def __init__(self, status: int, message: str = "", body: str = "", payload=None):
        self.status = status
        self.message = message or f"HTTP {status}"
        self.body = body
        # parsed JSON error body when the upstream sent one
        self.payload = payload
        super().__init__(self.message)

    @property
    def detail(self):
        """What we hand back to callers: upstream JSON if any, else the message."""
        return self.payload if self.payload is not None else self.message


def _error_from_response(r):
    # keep body (truncated) for logs
    body = r.text[:500]
    try:
        payload = r.json()
    except ValueError:
        payload = None
    if r.status_code in (401, 403):
        return HttpError(r.status_code, "auth_error", body, payload)
    if r.status_code == 404:
        return HttpError(404, "not_found", body, payload)
    if r.status_code == 429:
        return HttpError(429, "rate_limited", body, payload)
    return HttpError(r.status_code, "upstream_error", body, payload)


def _decode(r):
    # Try json; fall back to text
    try:
        return r.json()
    except ValueError:
        return {"raw": r.text}


def safe_get(url: str, *, headers=None, params=None, timeout=20):
    headers = headers or {}
    params = params or {}
    try:
        r = requests.get(url, headers=headers, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise HttpError(-1, f"network_error:{e}") from e

    if r.status_code >= 400:
        raise _error_from_response(r)
    return _decode(r)


def safe_post(url: str, *, headers=None, data=None, json=None, timeout=20):
    headers = headers or {}
    try:
        r = requests.post(url, headers=headers, data=data, json=json, timeout=timeout)
    except requests.RequestException as e:
        raise HttpError(-1, f"network_error:{e}") from e

    if r.status_code >= 400:
        raise _error_from_response(r)
    return _decode(r)
