# relay/__init__.py
import os
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object("config.Config")

    # Overlay selected env vars (already loaded by run.py)
    env_overlays = {
        "MAGICK_API_KEY": os.getenv("MAGICK_API_KEY", app.config.get("MAGICK_API_KEY", "")),
        "LANDBOT_API_KEY": os.getenv("LANDBOT_API_KEY", app.config.get("LANDBOT_API_KEY", "")),
        "SF_INSTANCE_URL": os.getenv("SF_INSTANCE_URL", app.config.get("SF_INSTANCE_URL", "")),
        "SF_DUPLICATES_ENDPOINT": os.getenv("SF_DUPLICATES_ENDPOINT", app.config.get("SF_DUPLICATES_ENDPOINT", "")),
    }
    app.config.update(env_overlays)
    if overrides:
        app.config.update(overrides)

    app.logger.info("Config loaded. Instance? %s", bool(app.config.get("SF_INSTANCE_URL")))
    app.logger.info("Duplicates endpoint? %s", bool(app.config.get("SF_DUPLICATES_ENDPOINT")))
    if not (app.config.get("MAGICK_API_KEY") or app.config.get("LANDBOT_API_KEY")):
        app.logger.warning("No API keys configured; every authenticated request will be rejected")

    from .services.audit_log import init_audit_log
    init_audit_log(app.config["LOG_DIR"])

    from .api import api as api_bp
    app.register_blueprint(api_bp, url_prefix="/api/salesforce")

    @app.after_request
    def _security_headers(resp):
        # every response, error replies included
        for name, value in SECURITY_HEADERS.items():
            resp.headers.setdefault(name, value)
        return resp

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return jsonify(success=False, message=e.description), e.code

    @app.errorhandler(Exception)
    def _unhandled(e):
        app.logger.exception("Unhandled error: %s", e)
        return jsonify(success=False, message="Error interno del servidor"), 500

    return app
