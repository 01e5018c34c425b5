from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from ..models import OpportunityPayload, Scenario
from .audit_log import save_create_log
from .composite import build_composite_body
from .http_client import HttpError
from .salesforce import (
    SalesforceApiError, SalesforceSettings, TokenProvider,
    current_settings, parse_composite_response, submit_composite,
)

log = logging.getLogger(__name__)


def _done(response: Dict[str, Any]) -> Dict[str, Any]:
    save_create_log(response)
    return response


def create_opportunity(data: Mapping[str, Any], settings: Optional[SalesforceSettings] = None,
                       token_provider: Optional[TokenProvider] = None) -> Dict[str, Any]:
    """
    Build and submit the composite for the scenario in MAI_composer_type_sf.

    Only a token failure raises (SalesforceAuthError); every other outcome,
    Salesforce errors included, comes back as a {"success": ...} object and
    is written to the create audit log.
    """
    settings = settings or current_settings()
    token_provider = token_provider or TokenProvider(settings)
    payload = OpportunityPayload(data)

    token = token_provider.get_access_token()

    if payload.scenario is Scenario.OPPORTUNITY_OPEN:
        return _done({
            "success": False,
            "message": "Ya existe un cliente con oportunidad abierta. No se puede crear (scenario #1).",
        })

    body = build_composite_body(payload, api_version=settings.api_version)
    if not body:
        log.info("[CreateOpp] nothing to submit for scenario %r", payload.scenario_tag)
        return _done({
            "success": True,
            "message": "No se procede a crear nada en Salesforce (Scenario 1).",
        })

    try:
        sf_data = submit_composite(body, token, settings)
    except HttpError as e:
        log.error("[CreateOpp] composite failed: %s %s", e.status, e.body or e.message)
        return _done({
            "success": False,
            "message": "Error al enviar composite a Salesforce",
            "error": e.detail,
        })
    except SalesforceApiError as e:
        log.error("[CreateOpp] composite not sent: %s", e)
        return _done({
            "success": False,
            "message": "Error al enviar composite a Salesforce",
            "error": str(e),
        })

    response = parse_composite_response(sf_data)
    if response["success"]:
        log.info("[CreateOpp] %s created opportunity %s", payload.scenario_tag, response.get("opportunityId"))
    else:
        log.warning("[CreateOpp] %s rejected: %s", payload.scenario_tag, response["message"])
    return _done(response)
