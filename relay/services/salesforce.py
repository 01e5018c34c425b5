from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from flask import current_app

from .http_client import HttpError, safe_post

log = logging.getLogger(__name__)

# referenceId of the Opportunity sub-request in every composite template
OPPORTUNITY_REF = "oportunidad"


class SalesforceAuthError(Exception): pass
class SalesforceApiError(Exception): pass


@dataclass(frozen=True)
class SalesforceSettings:
    token_url: str
    grant_type: str
    client_id: str
    client_secret: str
    username: str
    password: str
    instance_url: str = ""
    duplicates_endpoint: str = ""
    api_version: str = "v57.0"
    token_timeout: float = 20
    duplicates_timeout: float = 20
    composite_timeout: float = 30

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "SalesforceSettings":
        return cls(
            token_url=cfg.get("SF_TOKEN_URL", ""),
            grant_type=cfg.get("SF_GRANT_TYPE") or "password",
            client_id=cfg.get("SF_CLIENT_ID", ""),
            client_secret=cfg.get("SF_CLIENT_SECRET", ""),
            username=cfg.get("SF_USERNAME", ""),
            password=cfg.get("SF_PASSWORD", ""),
            instance_url=(cfg.get("SF_INSTANCE_URL") or "").rstrip("/"),
            duplicates_endpoint=cfg.get("SF_DUPLICATES_ENDPOINT", ""),
            api_version=cfg.get("SF_API_VERSION") or "v57.0",
            token_timeout=cfg.get("SF_TOKEN_TIMEOUT", 20),
            duplicates_timeout=cfg.get("SF_DUPLICATES_TIMEOUT", 20),
            composite_timeout=cfg.get("SF_COMPOSITE_TIMEOUT", 30),
        )

    @property
    def data_path(self) -> str:
        return f"/services/data/{self.api_version}"

    @property
    def composite_url(self) -> str:
        return f"{self.instance_url}{self.data_path}/composite"


def current_settings() -> SalesforceSettings:
    """Settings from the running Flask app."""
    return SalesforceSettings.from_config(current_app.config)


class TokenProvider:
    """
    OAuth2 password-grant exchange. No caching: every call asks for a fresh
    token, matching the one-request-one-token model of the relay.
    """

    def __init__(self, settings: SalesforceSettings):
        self.settings = settings

    def get_access_token(self) -> str:
        s = self.settings
        if not s.token_url:
            raise SalesforceAuthError("SF_TOKEN_URL is not configured")
        form = {
            "grant_type": s.grant_type,
            "client_id": s.client_id,
            "client_secret": s.client_secret,
            "username": s.username,
            "password": s.password,
        }
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        try:
            data = safe_post(s.token_url, headers=headers, data=form, timeout=s.token_timeout)
        except HttpError as e:
            log.error("[Salesforce] token request failed: %s %s", e.status, e.body or e.message)
            raise SalesforceAuthError("No se pudo obtener token de Salesforce") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            log.error("[Salesforce] token response without access_token")
            raise SalesforceAuthError("No se pudo obtener token de Salesforce")
        return token


def submit_composite(body: Dict[str, Any], token: str, settings: SalesforceSettings) -> Any:
    """POST a composite body; HttpError propagates to the caller."""
    if not settings.instance_url:
        raise SalesforceApiError("SF_INSTANCE_URL is not configured")
    headers = {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }
    steps = len(body.get("compositeRequest", []))
    log.info("[Salesforce] POST composite (%s steps) to %s", steps, settings.composite_url)
    return safe_post(settings.composite_url, headers=headers, json=body, timeout=settings.composite_timeout)


def _first_sub_error(sub: Any) -> Optional[Dict[str, Any]]:
    body = sub.get("body") if isinstance(sub, dict) else None
    if isinstance(body, list) and body and isinstance(body[0], dict) and body[0].get("errorCode"):
        return body[0]
    return None


def parse_composite_response(sf_data: Any) -> Dict[str, Any]:
    """
    Turn the raw composite reply into the relay's response object.
    Sub-request errors win over a top-level "errors" field.
    An "errors" key counts as a failure even when its list is empty.
    """
    subs = sf_data.get("compositeResponse") if isinstance(sf_data, dict) else None

    if isinstance(subs, list):
        for sub in subs:
            err = _first_sub_error(sub)
            if err:
                return {
                    "success": False,
                    "message": f"Error Salesforce: {err.get('errorCode')} => {err.get('message')}",
                    "compositeResponse": sf_data,
                }
    elif isinstance(sf_data, dict) and sf_data.get("errors") is not None:
        return {
            "success": False,
            "message": "Error global en Salesforce",
            "errors": sf_data["errors"],
        }

    opportunity_id = None
    for item in subs or []:
        if not isinstance(item, dict) or item.get("referenceId") != OPPORTUNITY_REF:
            continue
        body = item.get("body")
        if isinstance(body, dict) and body.get("id"):
            opportunity_id = body["id"]
            break

    return {
        "success": True,
        "message": "Enviado correctamente a Salesforce",
        "opportunityId": opportunity_id,
        "compositeResponse": sf_data,
    }
