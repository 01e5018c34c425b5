from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class Scenario(str, Enum):
    OPPORTUNITY_OPEN = "Opportunity_open"    # open opportunity exists, nothing is created
    OPPORTUNITY_CLOSE = "Opportunity_close"  # all opportunities closed
    OPPORTUNITY_NONE = "Opportunity_none"    # client + location, no opportunity
    LOCATION_NONE = "Location_none"          # client without location
    CLIENT_NONE = "Client_none"              # unknown client

    @classmethod
    def parse(cls, value) -> Optional["Scenario"]:
        """Tag → Scenario, or None for empty/unknown tags."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# leading numeric prefix, the way a lenient form parser reads "12.5 kW" or "3,2"
_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")
# 15-char case-sensitive or 18-char case-insensitive record id
_SALESFORCE_ID = re.compile(r"[A-Za-z0-9]{15}(?:[A-Za-z0-9]{3})?")


def is_salesforce_id(value) -> bool:
    return isinstance(value, str) and bool(_SALESFORCE_ID.fullmatch(value))


def parse_float(value) -> Optional[float]:
    """Lenient float parse: 12 / "12.5" / "12.5kW" → number, anything else → None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            m = _FLOAT_PREFIX.match(str(value))
            if not m:
                return None
            number = float(m.group(0))
    except (OverflowError, ValueError):
        return None
    # NaN and +/-inf cannot go out as JSON
    return number if math.isfinite(number) else None


def parse_int(value) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        if isinstance(value, float):
            number = int(value)
        elif isinstance(value, int):
            number = value
        else:
            m = _INT_PREFIX.match(str(value))
            if not m:
                return None
            number = int(m.group(0))
        float(number)
    except (OverflowError, ValueError):
        return None
    return number


def normalize_installation_type(value) -> str:
    """MONOFASICO/TRIFASICO (any case) get their accented labels; the rest passes through."""
    tipo = "" if value is None else str(value)
    upper = tipo.upper()
    if upper == "MONOFASICO":
        return "Monofásico"
    if upper == "TRIFASICO":
        return "Trifásico"
    return tipo


class OpportunityPayload:
    """
    Flat MAI_* field map sent by Landbot/Magick for the create call.

    text()   – field as sent, "" (or the given default) when missing or falsy
    raw()    – value as sent, None when missing
    number() – lenient float; `default` replaces a failed parse (None keeps it unset)
    integer() – same, int
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self.data: Dict[str, Any] = dict(data or {})
        self.installation_type = normalize_installation_type(
            self.data.get("MAI_fld_tipoInstalacionElectrica__c")
        )

    @property
    def scenario_tag(self) -> str:
        return self.text("MAI_composer_type_sf")

    @property
    def scenario(self) -> Optional[Scenario]:
        return Scenario.parse(self.scenario_tag)

    @property
    def account_id(self) -> str:
        """Existing account returned by the duplicate check."""
        return self.text("MAI_accountid_callback_sf")

    def raw(self, key: str):
        return self.data.get(key)

    def text(self, key: str, default: str = ""):
        """Falsy values (None, "", 0, False) give the default; anything else is sent as received."""
        value = self.data.get(key)
        if value is None or value is False or value == "":
            return default
        if isinstance(value, (int, float)) and not (value and math.isfinite(value)):
            return default
        return value

    def number(self, key: str, default: Optional[float] = None) -> Optional[float]:
        parsed = parse_float(self.data.get(key))
        if not parsed and default is not None:
            return default
        return parsed

    def integer(self, key: str, default: Optional[int] = None) -> Optional[int]:
        parsed = parse_int(self.data.get(key))
        if not parsed and default is not None:
            return default
        return parsed

    def commission(self, default: Optional[float] = None) -> Optional[float]:
        # the flows have sent this under both names
        key = "MAI_fld_margenBrutoComisionInstalador"
        if self.data.get(key) in (None, ""):
            key = "MAI_margenBrutoComisionInstalador"
        return self.number(key, default)
