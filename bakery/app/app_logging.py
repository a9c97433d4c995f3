"""
Logger JSON unique pour le backend.

Le fichier ne s'appelle PAS logging.py : il masquerait le module `logging`
de la stdlib pour tout ce qui est importé ensuite (uvicorn, pytest...).

`get_logger(name)` retourne un LoggerAdapter ; les champs structurés passent
par le `extra=` habituel et deviennent des clés de premier niveau du JSON.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class JsonFormatter(logging.Formatter):
    """Transforme un LogRecord en une ligne JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "func": record.funcName,
            "message": record.getMessage(),
        }

        extra: Optional[Dict[str, Any]] = getattr(record, "extra", None)
        if isinstance(extra, dict) and extra:
            payload.update(extra)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=_json_default)


class JsonLoggerAdapter(logging.LoggerAdapter):
    """Range le extra de l'appelant sous record.extra (pas de collision avec les attributs du LogRecord)."""

    def process(self, msg: str, kwargs: Dict[str, Any]):
        user_extra = kwargs.pop("extra", None)
        kwargs["extra"] = {"extra": user_extra} if user_extra else {}
        return msg, kwargs


def get_logger(name: str) -> JsonLoggerAdapter:
    """Crée/retourne le logger JSON configuré (stdout, idempotent)."""
    logger = logging.getLogger(name)

    if logger.handlers:
        return JsonLoggerAdapter(logger, {})

    level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_str, logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())

    logger.addHandler(handler)
    logger.propagate = False
    return JsonLoggerAdapter(logger, {})
