import pytest

from relay.models import Scenario
from relay.services.composite import build_composite_body

ACCOUNT = "001dt0000062qgkAAA"


def _full_payload(**extra):
    data = {
        "MAI_fld_masterRecordId__c": "MR-",
        "MAI_registroID": "R42",
        "MAI_name": "Solar SL",
        "MAI_phone": "600000000",
        "MAI_firstName": "Ana",
        "MAI_lastName": "Pérez",
        "MAI_email": "ana@example.com",
        "MAI_nameUbicacion": "Casa",
        "MAI_opportunityName": "Foo",
        "MAI_stageName": "Prospecting",
        "MAI_closeDate": "2026-12-31",
        "MAI_fld_numPaneles__c": "12",
        "MAI_fld_potenciaTotal__c": "5.4kW",
        "MAI_fld_paybackOferta__c": "7.8",
        "MAI_fld_precioConIVA__c": "abc",
        "MAI_fld_tipoInstalacionElectrica__c": "monofasico",
        "MAI_fld_figuraSolar__c": "Instalador",
        "MAI_fld_agencia__c": "AG1",
        "MAI_ofertaId": "OF-1",
        "MAI_accountid_callback_sf": ACCOUNT,
    }
    data.update(extra)
    return data


def _refs(body):
    return [s["referenceId"] for s in body["compositeRequest"]]


def _by_ref(body, ref):
    return next(s for s in body["compositeRequest"] if s["referenceId"] == ref)


@pytest.mark.parametrize("tag", ["", None, "Opportunity_open", "Something_else"])
def test_no_composite_for_open_empty_or_unknown(tag):
    assert build_composite_body(_full_payload(MAI_composer_type_sf=tag)) is None


def test_documented_opportunity_none_example():
    body = build_composite_body({
        "MAI_composer_type_sf": "Opportunity_none",
        "MAI_accountid_callback_sf": "001X",
        "MAI_opportunityName": "Foo",
    })
    steps = body["compositeRequest"]
    assert len(steps) == 3
    assert steps[0]["body"]["AccountId"] == "001X"
    assert steps[0]["body"]["Name"] == "Foo"


def test_explicit_scenario_overrides_payload_tag():
    body = build_composite_body(_full_payload(MAI_composer_type_sf="Opportunity_open"),
                                Scenario.OPPORTUNITY_CLOSE)
    assert _refs(body) == ["oportunidad", "catalogo", "PREoferta"]


def test_client_none_ten_steps_in_order():
    body = build_composite_body(_full_payload(), "Client_none")
    assert _refs(body) == [
        "cliente", "contacto1", "cliente1", "contacto2", "relacion1",
        "ubicacion", "relacion2", "oportunidad", "catalogo", "oferta",
    ]
    queries = [s for s in body["compositeRequest"] if s["method"] == "GET"]
    assert all("body" not in s for s in queries)

    client = _by_ref(body, "cliente")
    assert client["url"] == "/services/data/v57.0/sobjects/Account/"
    assert client["body"]["SLR_fld_masterRecordId__c"] == "MR-R42"
    assert client["body"]["RecordType"] == {"Name": "Cliente"}
    assert _by_ref(body, "contacto1")["body"]["AccountId"] == "@{cliente.id}"
    assert _by_ref(body, "ubicacion")["body"]["ParentId"] == "@{cliente.id}"

    opp = _by_ref(body, "oportunidad")["body"]
    assert opp["AccountId"] == "@{ubicacion.id}"
    assert opp["SLR_fld_cliente__c"] == "@{cliente.id}"
    assert opp["SLR_fld_masterRecordId__c"] == "INC|R42"
    assert opp["SLR_fld_codigo_instalador__c"] == "134"
    assert opp["SLR_fld_agencia__c"] == "AG1"


def test_client_none_defaults_numbers_to_zero():
    quote = _by_ref(build_composite_body(_full_payload(), "Client_none"), "oferta")["body"]
    assert quote["SLR_fld_numPaneles__c"] == 12.0
    assert quote["SLR_fld_potenciaTotal__c"] == 5.4
    assert quote["SLR_fld_paybackOferta__c"] == 7
    assert quote["SLR_fld_precioConIVA__c"] == 0
    assert quote["SLR_fld_capacidadBateria__c"] == 0
    assert quote["SLR_fld_comisionInstalador__c"] == 0
    assert quote["SLR_fld_tipoInversor__c"] == ""
    assert quote["SLR_fld_tipoInstalacionElectrica__c"] == "Monofásico"
    assert quote["OpportunityId"] == "@{oportunidad.id}"
    assert quote["Pricebook2Id"] == "@{catalogo.records[0].Id}"
    assert quote["SLR_fld_asociadoWattwin__c"] is False


def test_client_none_generic_name_when_missing():
    body = build_composite_body({"MAI_composer_type_sf": "Client_none"})
    assert _by_ref(body, "cliente")["body"]["Name"] == "Cliente Genérico"


def test_location_none_nine_steps_hung_from_existing_account():
    body = build_composite_body(_full_payload(), "Location_none")
    assert _refs(body) == [
        "contacto1", "cliente1", "contacto2", "relacion1",
        "ubicacion", "relacion2", "oportunidad", "catalogo", "PREoferta",
    ]
    assert _by_ref(body, "contacto1")["body"]["AccountId"] == ACCOUNT
    assert f"'{ACCOUNT}'" in _by_ref(body, "cliente1")["url"]
    assert _by_ref(body, "ubicacion")["body"]["ParentId"] == ACCOUNT

    opp = _by_ref(body, "oportunidad")["body"]
    assert opp["SLR_fld_cliente__c"] == ACCOUNT
    assert opp["SLR_fld_figuraSolar__c"] == ""
    assert "SLR_fld_agencia__c" not in opp
    assert "SLR_fld_codigoDistribuidor__c" not in opp


@pytest.mark.parametrize("account", ["x'+OR+Id+!=+'", "001X", "001dt0000062qgkAAA'", 1234567890123456])
def test_location_none_skips_queries_for_malformed_account_id(account):
    body = build_composite_body(_full_payload(MAI_accountid_callback_sf=account), "Location_none")
    assert _refs(body) == [
        "contacto1", "ubicacion", "relacion2", "oportunidad", "catalogo", "PREoferta",
    ]
    assert not any("Account+WHERE" in s["url"] or "OR+Id" in s["url"] for s in body["compositeRequest"])


def test_location_none_accepts_fifteen_char_id():
    body = build_composite_body(_full_payload(MAI_accountid_callback_sf="001dt0000062qgk"), "Location_none")
    assert "cliente1" in _refs(body)
    assert len(body["compositeRequest"]) == 9


def test_location_none_leaves_unparsable_numbers_unset():
    quote = _by_ref(build_composite_body(_full_payload(), "Location_none"), "PREoferta")["body"]
    assert quote["SLR_fld_numPaneles__c"] == 12.0
    assert quote["SLR_fld_precioConIVA__c"] is None
    assert quote["SLR_fld_capacidadBateria__c"] is None
    assert quote["SLR_fld_paybackOferta__c"] == 7
    assert quote["SLR_fld_tipoInversor__c"] is None
    assert quote["Name"] == "OF-1"


def test_opportunity_close_three_steps_with_draft_status():
    body = build_composite_body(_full_payload(), "Opportunity_close")
    assert _refs(body) == ["oportunidad", "catalogo", "PREoferta"]
    opp = _by_ref(body, "oportunidad")["body"]
    assert opp["AccountId"] == ACCOUNT
    assert opp["SLR_fld_cliente__c"] == ACCOUNT
    assert opp["SLR_fld_figuraSolar__c"] == "Instalador"

    quote = _by_ref(body, "PREoferta")["body"]
    assert quote["Status"] == "Draft"
    assert quote["SLR_fld_paybackOferta__c"] == 7.8


def test_api_version_is_applied_to_every_url():
    body = build_composite_body(_full_payload(), "Client_none", api_version="v61.0")
    assert all(s["url"].startswith("/services/data/v61.0/") for s in body["compositeRequest"])


def test_builder_does_not_mutate_input():
    data = _full_payload()
    before = dict(data)
    build_composite_body(data, "Client_none")
    assert data == before
