from flask import current_app, request, abort

# Landbot and Magick each get their own key
KEY_NAMES = ("MAGICK_API_KEY", "LANDBOT_API_KEY")


def require_api_key():
    token = request.headers.get("X-API-Key") or request.args.get("api_key")
    if not token:
        abort(401, description="API Key is required")

    accepted = [current_app.config.get(k) for k in KEY_NAMES]
    accepted = [k for k in accepted if k]
    if token not in accepted:
        current_app.logger.warning("Rejected API key from %s", request.remote_addr)
        abort(403, description="Invalid API Key")
