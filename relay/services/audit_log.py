# relay/services/audit_log.py
"""
Append-only JSON-lines audit trail, one file per operation:

    duplicates.log          every duplicate check outcome
    createOpportunity.log   every create/composite outcome

Each line is {"timestamp": <ISO-8601 UTC>, **response}. Writes go through
logging.FileHandler, so an I/O failure is reported on stderr by the logging
module and never reaches the request.
"""
import json
import logging
import os
from datetime import datetime, timezone

DUPLICATES_LOGGER = "relay.audit.duplicates"
CREATE_LOGGER = "relay.audit.create"

_FILES = {
    DUPLICATES_LOGGER: "duplicates.log",
    CREATE_LOGGER: "createOpportunity.log",
}


class JsonLineFormatter(logging.Formatter):
    def format(self, record):
        entry = {"timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()}
        info = getattr(record, "audit", None)
        if isinstance(info, dict):
            entry.update(info)
        else:
            entry["message"] = record.getMessage()
        return json.dumps(entry, ensure_ascii=False, default=str)


def init_audit_log(log_dir):
    """(Re)attach the file handlers under log_dir. Safe to call per app."""
    os.makedirs(log_dir, exist_ok=True)
    for name, filename in _FILES.items():
        logger = logging.getLogger(name)
        logger.setLevel(logging.INFO)
        logger.propagate = False
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()
        handler = logging.FileHandler(os.path.join(log_dir, filename), encoding="utf-8")
        handler.setFormatter(JsonLineFormatter())
        logger.addHandler(handler)


def _save(logger_name, info):
    logging.getLogger(logger_name).info("audit", extra={"audit": dict(info)})


def save_duplicates_log(info):
    _save(DUPLICATES_LOGGER, info)


def save_create_log(info):
    _save(CREATE_LOGGER, info)
