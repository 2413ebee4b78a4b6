from __future__ import annotations

import logging
import os
import threading
import time
from collections import defaultdict, deque
from typing import Dict, Optional

from flask import Flask, jsonify, request

from .config import Settings, env_int, load_settings
from .service import Assistant, EmptyQuestionError, build_assistant

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("pricebot")

START_TIME = time.time()
RATE_LIMIT_WINDOW_SEC = 60

_rate_limit_lock = threading.Lock()
_rate_limit_hits: Dict[str, deque[float]] = defaultdict(deque)


def client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def is_rate_limited(ip: str, limit_per_minute: int) -> bool:
    if limit_per_minute <= 0:
        return False
    now = time.time()
    with _rate_limit_lock:
        window = _rate_limit_hits[ip]
        while window and (now - window[0]) > RATE_LIMIT_WINDOW_SEC:
            window.popleft()
        if len(window) >= limit_per_minute:
            return True
        window.append(now)
    return False


def create_app(assistant: Optional[Assistant] = None, settings: Optional[Settings] = None) -> Flask:
    settings = settings or load_settings()
    assistant = assistant or build_assistant(settings)
    rate_limit_per_minute = settings.rate_limit_per_minute
    app = Flask(__name__)

    @app.after_request
    def add_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "content-type,authorization"
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault("X-Frame-Options", "DENY")
        return response

    @app.route("/", methods=["GET", "POST", "OPTIONS"])
    @app.route("/api/index", methods=["GET", "POST", "OPTIONS"])
    def api_index():
        if request.method == "OPTIONS":
            return "", 204
        try:
            if request.method == "GET":
                force = request.args.get("refresh") == "1"
                return jsonify(assistant.refresh(force))

            if is_rate_limited(client_ip(), rate_limit_per_minute):
                return jsonify({"error": "Muitas perguntas. Tente novamente em instantes."}), 429
            body = request.get_json(silent=True)
            if not isinstance(body, dict):
                body = {}
            return jsonify(assistant.ask(str(body.get("question") or "")))
        except EmptyQuestionError as exc:
            return jsonify({"error": str(exc)}), 400
        except Exception:
            logger.exception("request failed: %s %s", request.method, request.path)
            return jsonify({"error": "Erro interno."}), 500

    @app.route("/health")
    def health():
        snapshot = assistant.cache.snapshot()
        return {
            "status": "ok",
            "uptime_sec": int(time.time() - START_TIME),
            "product_count": len(snapshot.products),
            "last_refreshed_at": snapshot.refreshed_at,
        }

    return app


if __name__ == "__main__":
    host = os.getenv("APP_HOST", "0.0.0.0")
    port = env_int("PORT", 3001, min_value=1, max_value=65535)
    debug = os.getenv("APP_DEBUG", "0") == "1"
    create_app().run(host=host, port=port, debug=debug)
