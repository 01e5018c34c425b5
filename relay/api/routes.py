from flask import jsonify, request, current_app
from . import api
from .auth import require_api_key
from ..utils.ratelimit import check_rate_limit
from ..utils.validation import validate_duplicates_payload, validate_create_payload
from ..services.duplicates import check_duplicates, DuplicateLookupError
from ..services.opportunity import create_opportunity as create_opportunity_svc
from ..services.salesforce import SalesforceAuthError


@api.before_request
def _limit_then_authenticate():
    # rate limit first so failed key guesses are counted too
    limited = check_rate_limit()
    if limited is not None:
        return limited
    if request.endpoint == "api.health":
        return None
    require_api_key()


def _request_payload():
    """JSON body, else form fields (Landbot can post urlencoded), else {}."""
    data = request.get_json(silent=True)
    if data is None and request.form:
        data = request.form.to_dict()
    return {} if data is None else data


@api.route('/health', methods=['GET'])
def health():
    return jsonify(status='ok')


@api.route('/duplicates', methods=['POST'])
def search_duplicates():
    data = _request_payload()
    ok, doc_or_error = validate_duplicates_payload(data)
    if not ok:
        return jsonify(success=False, message=doc_or_error), 400

    try:
        result = check_duplicates(doc_or_error)
    except (SalesforceAuthError, DuplicateLookupError) as e:
        current_app.logger.error("Error en searchDuplicates: %s", e)
        return jsonify(success=False, message="Error interno al buscar duplicados", error=str(e)), 500

    return jsonify(result), 200


@api.route('/create', methods=['POST'])
def create_opportunity():
    data = _request_payload()
    ok, error = validate_create_payload(data)
    if not ok:
        return jsonify(success=False, message=error), 400

    try:
        result = create_opportunity_svc(data)
    except SalesforceAuthError as e:
        current_app.logger.error("Error en createOpportunity: %s", e)
        return jsonify(success=False, message="Error interno al crear oportunidad", error=str(e)), 500

    # logical failures (success=false) still answer 200 so the flow can branch on them
    return jsonify(result), 200
