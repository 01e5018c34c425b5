from typing import Tuple, Dict, Any

# Either one identifies the customer; numDocumento wins when both are sent
DOCUMENT_FIELDS = ["numDocumento", "cif"]

def validate_duplicates_payload(payload: Dict[str, Any]) -> Tuple[bool, str]:
    """Returns (True, document) or (False, error message)."""
    if not isinstance(payload, dict):
        return False, "El cuerpo de la petición debe ser un objeto JSON."
    for f in DOCUMENT_FIELDS:
        value = payload.get(f)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return True, value
    return False, "Falta DNI/CIF para verificar duplicados."

def validate_create_payload(payload: Dict[str, Any]) -> Tuple[bool, str]:
    if not isinstance(payload, dict):
        return False, "El cuerpo de la petición debe ser un objeto JSON."
    return True, ""
