# relay/services/duplicates.py
"""
Duplicate check against the Salesforce duplicates endpoint.

The endpoint answers with a positional array: element 0 is metadata, every
following element describes a matching account with "CUENTA: ID",
"OPORTUNIDADES" (each with "OPP: STATUS") and "UBICACIONES". Nothing about
that shape is guaranteed, so every access below tolerates missing or
mistyped pieces.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..models import Scenario
from .audit_log import save_duplicates_log
from .http_client import HttpError, safe_get
from .salesforce import SalesforceSettings, TokenProvider, current_settings

log = logging.getLogger(__name__)

CLOSED_STATUSES = ("Closed Won", "Closed Lost")
ACCOUNT_ID_KEY = "CUENTA: ID"
OPPORTUNITIES_KEY = "OPORTUNIDADES"
LOCATIONS_KEY = "UBICACIONES"
STATUS_KEY = "OPP: STATUS"


class DuplicateLookupError(Exception):
    pass


def _as_list(v) -> List[Any]:
    return v if isinstance(v, list) else []


def detect_scenario(dup_data: Any) -> Scenario:
    if not isinstance(dup_data, list) or len(dup_data) < 2:
        return Scenario.CLIENT_NONE

    second = dup_data[1] if isinstance(dup_data[1], dict) else {}
    opportunities = _as_list(second.get(OPPORTUNITIES_KEY))
    locations = _as_list(second.get(LOCATIONS_KEY))

    if opportunities:
        for opp in opportunities:
            status = opp.get(STATUS_KEY) if isinstance(opp, dict) else None
            if (status or "") not in CLOSED_STATUSES:
                return Scenario.OPPORTUNITY_OPEN
        return Scenario.OPPORTUNITY_CLOSE

    if locations:
        return Scenario.OPPORTUNITY_NONE
    return Scenario.LOCATION_NONE


def extract_first_account_id(dup_data: Any) -> str:
    if not isinstance(dup_data, list) or len(dup_data) < 2:
        return ""
    for item in dup_data[1:]:
        if isinstance(item, dict) and item.get(ACCOUNT_ID_KEY):
            return str(item[ACCOUNT_ID_KEY])
    return ""


def lookup_duplicates(document: str, token: str, settings: SalesforceSettings) -> Any:
    if not settings.duplicates_endpoint:
        raise HttpError(-1, "SF_DUPLICATES_ENDPOINT is not configured")
    headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
    return safe_get(
        settings.duplicates_endpoint,
        headers=headers,
        params={"dni": document},
        timeout=settings.duplicates_timeout,
    )


def check_duplicates(document: str, settings: Optional[SalesforceSettings] = None,
                     token_provider: Optional[TokenProvider] = None) -> Dict[str, Any]:
    """
    Token → lookup → classify. Returns the response object for Landbot/Magick.
    Raises SalesforceAuthError or DuplicateLookupError.
    """
    settings = settings or current_settings()
    token_provider = token_provider or TokenProvider(settings)

    token = token_provider.get_access_token()

    try:
        dup_data = lookup_duplicates(document, token, settings)
    except HttpError as e:
        log.error("[Duplicates] lookup failed: %s %s", e.status, e.body or e.message)
        save_duplicates_log({
            "success": False,
            "message": "Error consultando duplicados en SF",
            "error": e.message,
            "docParaDuplicados": document,
        })
        raise DuplicateLookupError("Error consultando duplicados en Salesforce") from e

    scenario = detect_scenario(dup_data)
    account_id = extract_first_account_id(dup_data)
    log.info("[Duplicates] scenario=%s account=%s", scenario.value, account_id or "-")

    if scenario is Scenario.OPPORTUNITY_OPEN:
        response = {
            "success": False,
            "MAI_composer_type_sf": scenario.value,
            "message": "Ya existe un cliente con oportunidad abierta. No se puede crear.",
            "sf_raw": dup_data,
            "MAI_accountid_callback_sf": account_id,
        }
    else:
        response = {
            "success": True,
            "message": "OK. No hay oportunidad abierta, puedes continuar.",
            "MAI_composer_type_sf": scenario.value,
            "MAI_accountid_callback_sf": account_id,
            "sf_raw": dup_data,
        }
    save_duplicates_log(response)
    return response
