from __future__ import annotations
import json, logging
from datetime import datetime, timezone
from uuid import uuid4

from flask import current_app, g, jsonify, request
from werkzeug.wrappers.response import Response

from . import bp


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": _utcnow().strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("event", "path", "method", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _setup_structured_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")), logging.INFO)
    for logger in (app.logger, logging.getLogger("blueprints")):
        has_json = any(
            isinstance(h, logging.StreamHandler)
            and isinstance(getattr(h, "formatter", None), JSONFormatter)
            for h in logger.handlers
        )
        if not has_json:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)
        logger.setLevel(level)


@bp.before_app_request
def _start_timer():
    g._req_start = _utcnow()
    g.request_id = request.headers.get("X-Request-ID") or uuid4().hex


@bp.after_app_request
def _log_request(response: Response):
    start = getattr(g, "_req_start", None)
    duration_ms = int((_utcnow() - start).total_seconds() * 1000) if start else None
    response.headers.setdefault("X-Request-ID", getattr(g, "request_id", ""))
    current_app.logger.info("request handled", extra={
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "request_id": getattr(g, "request_id", None),
    })
    return response


@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)


@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": _utcnow().strftime("%Y-%m-%dT%H:%M:%SZ"),
    })
