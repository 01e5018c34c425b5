# relay/services/composite.py
"""
Composite request templates, one per scenario.

    Client_none                          10 steps: client Account, Contact, 3 checks,
                                         location Account, relation, Opportunity,
                                         price book, Quote
    Location_none                        9 steps: the above minus the client Account,
                                         hung from the existing account id (6 when
                                         that id is malformed: no checks)
    Opportunity_close / Opportunity_none 3 steps: Opportunity, price book, Quote
    Opportunity_open / empty / unknown   no composite (None)

Later steps point at earlier ones with "@{referenceId.field}".
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from ..models import OpportunityPayload, Scenario, is_salesforce_id

DEFAULT_API_VERSION = "v57.0"
INSTALLER_CODE = "134"
DEFAULT_CLIENT_NAME = "Cliente Genérico"

# numeric Quote fields → payload keys
QUOTE_NUMERIC_FIELDS = (
    ("SLR_fld_numPaneles__c", "MAI_fld_numPaneles__c"),
    ("SLR_fld_potenciaTotal__c", "MAI_fld_potenciaTotal__c"),
    ("SLR_fld_potenciaNominalIns__c", "MAI_fld_potenciaNominalIns__c"),
    ("SLR_fld_capacidadBateria__c", "MAI_fld_capacidadBateria__c"),
    ("SLR_fld_precioConIVA__c", "MAI_fld_precioConIVA__c"),
    ("SLR_fld_tipoImpositivo__c", "MAI_fld_tipoImpositivo__c"),
)

QUOTE_TEXT_FIELDS = (
    ("SLR_fld_tipoAutoconsumo__c", "MAI_fld_tipoAutoconsumo__c"),
    ("SLR_fld_tipoInversor__c", "MAI_fld_tipoInversor__c"),
    ("SLR_fld_marcaInversor__c", "MAI_fld_marcaInversor__c"),
    ("SLR_fld_marcaPanel__c", "MAI_fld_marcaPanel__c"),
)

OPPORTUNITY_ORIGIN_FIELDS = (
    ("SLR_fld_distribuidor__c", "MAI_fld_distribuidor__c"),
    ("SLR_fld_codigoDistribuidor__c", "MAI_fld_codigoDistribuidor__c"),
    ("SLR_fld_agencia__c", "MAI_fld_agencia__c"),
    ("SLR_fld_canal__c", "MAI_fld_canal__c"),
    ("SLR_fld_canalOrigen__c", "MAI_fld_canalOrigen__c"),
    ("SLR_fld_empresaOrigen__c", "MAI_fld_empresaOrigen__c"),
    ("SLR_fld_subcanal__c", "MAI_fld_subcanal__c"),
    ("SLR_fld_tipologiaOrigen__c", "MAI_fld_tipologiaOrigen__c"),
    ("SLR_fld_campanya__c", "MAI_fld_campanya__c"),
    ("SLR_fld_figuraSolar__c", "MAI_fld_figuraSolar__c"),
    ("SLR_fld_matriculaAgente__c", "MAI_fld_matriculaAgente__c"),
)

# Location_none never carried these from the flow
_LOCATION_NONE_SKIPPED = {"SLR_fld_codigoDistribuidor__c", "SLR_fld_agencia__c"}
_LOCATION_NONE_BLANK = {"SLR_fld_figuraSolar__c", "SLR_fld_matriculaAgente__c"}


class _Paths:
    def __init__(self, api_version: str):
        self.base = f"/services/data/{api_version}"

    def sobject(self, name: str) -> str:
        return f"{self.base}/sobjects/{name}/"

    def query(self, soql: str) -> str:
        return f"{self.base}/query/?q={soql}"


def _step(method: str, url: str, ref: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    sub = {"method": method, "url": url, "referenceId": ref}
    if body is not None:
        sub["body"] = body
    return sub


# ---------- steps ----------

def _client_account(p: OpportunityPayload, paths: _Paths) -> Dict[str, Any]:
    return _step("POST", paths.sobject("Account"), "cliente", {
        "SLR_fld_masterRecordId__c": f"{p.text('MAI_fld_masterRecordId__c')}{p.text('MAI_registroID')}",
        "Name": p.text("MAI_name", DEFAULT_CLIENT_NAME),
        "Phone": p.text("MAI_phone"),
        "SLR_fld_tipoCliente__c": p.text("MAI_fld_tipoCliente__c"),
        "SLR_fld_tipoDocumento__c": p.text("MAI_fld_tipoDocumento__c"),
        "SLR_fld_numeroDocumento__c": p.text("MAI_fld_numeroDocumento__c"),
        "BillingCity": p.text("MAI_billingCity"),
        "BillingCountryCode": p.text("MAI_billingCountryCode"),
        "BillingPostalCode": p.text("MAI_billingPostalCode"),
        "BillingStateCode": p.text("MAI_billingStateCode"),
        "BillingStreet": p.text("MAI_billingStreet"),
        "RecordType": {"Name": "Cliente"},
    })


def _contact(p: OpportunityPayload, paths: _Paths, account_ref: str) -> Dict[str, Any]:
    return _step("POST", paths.sobject("Contact"), "contacto1", {
        "AccountId": account_ref,
        "FirstName": p.text("MAI_firstName"),
        "LastName": p.text("MAI_lastName"),
        "MobilePhone": p.text("MAI_contactPhone"),
        "Email": p.text("MAI_email"),
        "RecordType": {"Name": "SLR_rt_contacto"},
    })


def _verification_queries(paths: _Paths, account_ref: str) -> List[Dict[str, Any]]:
    return [
        _step("GET", paths.query(f"SELECT+Id+FROM+Account+WHERE+Id='{account_ref}'+LIMIT+1"), "cliente1"),
        _step("GET", paths.query("SELECT+Id+FROM+Contact+WHERE+Id='@{contacto1.id}'+LIMIT+1"), "contacto2"),
        _step("GET", paths.query(
            f"SELECT+Id+FROM+AccountContactRelation+WHERE+AccountId+='{account_ref}'"
            "+AND+ContactId+='@{contacto1.id}'+LIMIT+1"
        ), "relacion1"),
    ]


def _location_account(p: OpportunityPayload, paths: _Paths, parent_ref: str) -> Dict[str, Any]:
    return _step("POST", paths.sobject("Account"), "ubicacion", {
        "Name": p.text("MAI_nameUbicacion"),
        "Phone": p.text("MAI_phoneUbicacion"),
        "BillingCity": p.text("MAI_billingCityUbicacion"),
        "BillingCountryCode": p.text("MAI_billingCountryCodeUbicacion"),
        "BillingPostalCode": p.text("MAI_billingPostalCodeUbicacion"),
        "BillingStateCode": p.text("MAI_billingStateCodeUbicacion"),
        "BillingStreet": p.text("MAI_billingStreetUbicacion"),
        "ParentId": parent_ref,
        "RecordType": {"Name": "Ubicación"},
    })


def _location_relation(paths: _Paths) -> Dict[str, Any]:
    return _step("POST", paths.sobject("AccountContactRelation"), "relacion2", {
        "AccountId": "@{ubicacion.id}",
        "ContactId": "@{contacto1.id}",
    })


def _opportunity(p: OpportunityPayload, paths: _Paths, account_ref: str, client_ref: str,
                 origin_fields=OPPORTUNITY_ORIGIN_FIELDS, blank_fields=frozenset()) -> Dict[str, Any]:
    body = {
        "Name": p.text("MAI_opportunityName"),
        "AccountId": account_ref,
        "SLR_fld_tipoCliente__c": p.text("MAI_fld_tipoCliente__c"),
        "CloseDate": p.text("MAI_closeDate"),
        "SLR_fld_masterRecordId__c": f"INC|{p.text('MAI_registroID')}",
        "SLR_fld_cliente__c": client_ref,
        "StageName": p.text("MAI_stageName"),
    }
    for sf_field, key in origin_fields:
        body[sf_field] = "" if sf_field in blank_fields else p.text(key)
    body["SLR_fld_codigo_instalador__c"] = INSTALLER_CODE
    body["RecordType"] = {"Name": "Op. Instalación"}
    return _step("POST", paths.sobject("Opportunity"), "oportunidad", body)


def _price_book(paths: _Paths) -> Dict[str, Any]:
    return _step("GET", paths.query("SELECT+Id+FROM+PriceBook2+WHERE+IsStandard=true+LIMIT+1"), "catalogo")


def _quote(p: OpportunityPayload, paths: _Paths, ref: str, *, numeric_default: Optional[float],
           text_default: Optional[str], payback_as_int: bool = True,
           status_default: Optional[str] = None) -> Dict[str, Any]:
    """
    numeric_default None leaves unparsable numbers unset (null);
    text_default None sends text fields exactly as received.
    """
    def text(key, default=text_default):
        return p.raw(key) if default is None else p.text(key, default)

    body: Dict[str, Any] = {}
    for sf_field, key in QUOTE_NUMERIC_FIELDS:
        body[sf_field] = p.number(key, numeric_default)
    if payback_as_int:
        body["SLR_fld_paybackOferta__c"] = p.integer("MAI_fld_paybackOferta__c", numeric_default)
    else:
        body["SLR_fld_paybackOferta__c"] = p.number("MAI_fld_paybackOferta__c", numeric_default)
    body["SLR_fld_produccionAnualEstimada__c"] = p.number("MAI_fld_produccionAnualEstimada__c", numeric_default)
    for sf_field, key in QUOTE_TEXT_FIELDS:
        body[sf_field] = text(key)
    body["SLR_fld_potenciaNominalPanel__c"] = p.number("MAI_fld_potenciaNominalPanel__c", numeric_default)
    body["SLR_fld_tipoInstalacionElectrica__c"] = p.installation_type
    body["SLR_fld_tipoEstructura__c"] = text("MAI_fld_tipoEstructura__c")
    body["SLR_fld_cuotaSuscripcion__c"] = p.raw("MAI_fld_cuotaSuscripcion__c")
    body["OpportunityId"] = "@{oportunidad.id}"
    body["Name"] = text("MAI_ofertaId")
    body["Pricebook2Id"] = "@{catalogo.records[0].Id}"
    body["Status"] = text("MAI_status", status_default or text_default)
    body["SLR_fld_asociadoWattwin__c"] = False
    body["SLR_fld_comisionInstalador__c"] = p.commission(numeric_default)
    body["SLR_fld_preofertaID__c"] = text("MAI_ofertaId")
    body["RecordType"] = {"Name": "Preoferta"}
    return _step("POST", paths.sobject("Quote"), ref, body)


# ---------- templates ----------

def _client_none(p: OpportunityPayload, paths: _Paths) -> List[Dict[str, Any]]:
    return [
        _client_account(p, paths),
        _contact(p, paths, "@{cliente.id}"),
        *_verification_queries(paths, "@{cliente.id}"),
        _location_account(p, paths, "@{cliente.id}"),
        _location_relation(paths),
        _opportunity(p, paths, "@{ubicacion.id}", "@{cliente.id}"),
        _price_book(paths),
        _quote(p, paths, "oferta", numeric_default=0, text_default=""),
    ]


def _location_none(p: OpportunityPayload, paths: _Paths) -> List[Dict[str, Any]]:
    account_id = p.account_id
    origin = [f for f in OPPORTUNITY_ORIGIN_FIELDS if f[0] not in _LOCATION_NONE_SKIPPED]
    # the checks splice the id into SOQL; only well-formed ids get there
    checks = _verification_queries(paths, account_id) if is_salesforce_id(account_id) else []
    return [
        _contact(p, paths, account_id),
        *checks,
        _location_account(p, paths, account_id),
        _location_relation(paths),
        _opportunity(p, paths, "@{ubicacion.id}", account_id,
                     origin_fields=origin, blank_fields=_LOCATION_NONE_BLANK),
        _price_book(paths),
        # numbers stay unset on a failed parse here (no 0 fallback)
        _quote(p, paths, "PREoferta", numeric_default=None, text_default=None),
    ]


def _opportunity_only(p: OpportunityPayload, paths: _Paths) -> List[Dict[str, Any]]:
    account_id = p.account_id
    return [
        _opportunity(p, paths, account_id, account_id),
        _price_book(paths),
        _quote(p, paths, "PREoferta", numeric_default=None, text_default=None,
               payback_as_int=False, status_default="Draft"),
    ]


_TEMPLATES = {
    Scenario.CLIENT_NONE: _client_none,
    Scenario.LOCATION_NONE: _location_none,
    Scenario.OPPORTUNITY_CLOSE: _opportunity_only,
    Scenario.OPPORTUNITY_NONE: _opportunity_only,
}


def build_composite_body(data: Union[OpportunityPayload, Mapping[str, Any]],
                         scenario: Union[Scenario, str, None] = None,
                         api_version: str = DEFAULT_API_VERSION) -> Optional[Dict[str, Any]]:
    """
    Pure: (payload, scenario) → {"compositeRequest": [...]} or None.
    The scenario defaults to the payload's MAI_composer_type_sf.
    """
    payload = data if isinstance(data, OpportunityPayload) else OpportunityPayload(data)
    tag = payload.scenario_tag if scenario is None else scenario
    template = _TEMPLATES.get(Scenario.parse(tag))
    if template is None:
        return None
    return {"compositeRequest": template(payload, _Paths(api_version))}
