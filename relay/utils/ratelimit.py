import time
from flask import current_app, request, jsonify

# Simple in-memory rate limiter, per process.
_BUCKETS = {}

def check_rate_limit(max_calls: int = None, window_sec: int = 60):
    """
    Sliding-window limit per client address, counted for every request
    (rejected API keys included). Returns a 429 response when the client is
    over the limit, else None. max_calls defaults to MAX_REQUESTS_PER_MIN.
    """
    limit = max_calls or int(current_app.config.get("MAX_REQUESTS_PER_MIN") or 1000)
    now = time.time()
    key = request.remote_addr or "-"
    # drop old timestamps
    bucket = [t for t in _BUCKETS.get(key, []) if now - t < window_sec]
    if len(bucket) >= limit:
        _BUCKETS[key] = bucket
        retry = int(window_sec - (now - bucket[0]))
        current_app.logger.warning("Rate limit hit for %s", key)
        return jsonify({
            "success": False,
            "message": "Rate limit exceeded. Try again in a moment.",
            "retry_in_seconds": max(1, retry),
        }), 429
    bucket.append(now)
    _BUCKETS[key] = bucket
    return None

def reset_buckets():
    _BUCKETS.clear()
