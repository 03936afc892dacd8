import json
import logging
import re
import time
import uuid
from typing import Any

from fastapi import Request
from starlette.concurrency import iterate_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from storegate.common.config import get_settings
from storegate.infra.observability.metrics import LATENCY, REQUESTS

MAX_TRACED_BODY_CHARS = 2048

logger = logging.getLogger("http")


class MetricsMiddleware(BaseHTTPMiddleware):
    SENSITIVE_KEYS = {
        "password",
        "secret",
        "token",
        "api_key",
        "x-api-key",
        "authorization",
        "aws_secret_access_key",
    }
    # File content is never written to logs, only its size
    PAYLOAD_KEYS = {"base64_payload"}

    TEXT_PATTERNS = (
        r"(?i)(token|secret|api_key|x-api-key|password|authorization)\s*[:=]\s*[^\s]+",
        r"(?i)authorization\s*:\s*bearer\s+[A-Za-z0-9\-_.]+",
    )

    def _mask_mapping(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            masked: dict[str, Any] = {}
            for k, v in obj.items():
                key = k.lower() if isinstance(k, str) else k
                if key in self.SENSITIVE_KEYS:
                    masked[k] = "***"
                elif key in self.PAYLOAD_KEYS and isinstance(v, str):
                    masked[k] = f"<{len(v)} chars>"
                else:
                    masked[k] = self._mask_mapping(v)
            return masked
        if isinstance(obj, list):
            return [self._mask_mapping(x) for x in obj]
        return obj

    def _mask_text(self, text: str) -> str:
        masked = text
        for pattern in self.TEXT_PATTERNS:
            masked = re.sub(
                pattern,
                lambda m: m.group(0).split(":")[0].split("=")[0] + ": ***",
                masked,
            )
        return masked

    def _render_body(self, raw: bytes) -> str | None:
        if not raw:
            return None
        decoded = raw.decode("utf-8", errors="replace")
        try:
            parsed = json.loads(decoded)
        except ValueError:
            rendered = self._mask_text(decoded)
        else:
            rendered = json.dumps(self._mask_mapping(parsed), ensure_ascii=False)
        if len(rendered) > MAX_TRACED_BODY_CHARS:
            rendered = rendered[:MAX_TRACED_BODY_CHARS] + "...<truncated>"
        return rendered

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        client_ip = request.headers.get("X-Forwarded-For")
        if client_ip:
            client_ip = client_ip.split(",")[0].strip()
        elif request.client:
            client_ip = request.client.host

        trace_http = get_settings().TRACE_HTTP
        request_body: str | None = None
        if trace_http:
            raw_body = await request.body()
            request_body = self._render_body(raw_body)

            async def receive():
                return {"type": "http.request", "body": raw_body, "more_body": False}

            request._receive = receive

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed = time.perf_counter() - start
            logger.exception(
                "request_error method=%s route=%s status=%s duration_ms=%.3f request_id=%s",
                request.method,
                request.url.path,
                500,
                round(elapsed * 1000, 3),
                request_id,
                extra={
                    "extra": {
                        "method": request.method,
                        "route": request.url.path,
                        "status": 500,
                        "duration_ms": round(elapsed * 1000, 3),
                        "request_id": request_id,
                        "client_ip": client_ip,
                        "exception": repr(exc),
                    }
                },
            )
            raise

        elapsed = time.perf_counter() - start
        status_code = response.status_code

        route_template = request.scope.get("route", None)
        if route_template and hasattr(route_template, "path"):
            route = route_template.path
        else:
            route = request.url.path

        REQUESTS.labels(request.method, route, str(status_code)).inc()
        LATENCY.labels(request.method, route).observe(elapsed)

        if "X-Request-Id" not in response.headers:
            response.headers["X-Request-Id"] = request_id

        level = logging.INFO
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING

        duration_ms = round(elapsed * 1000, 3)
        extra_payload: dict[str, Any] = {
            "method": request.method,
            "route": route,
            "query": request.url.query,
            "status": status_code,
            "duration_ms": duration_ms,
            "request_id": request_id,
            "client_ip": client_ip,
            "user_agent": request.headers.get("User-Agent"),
        }
        if trace_http:
            response_bytes = b""
            async for chunk in response.body_iterator:
                response_bytes += chunk
            response.body_iterator = iterate_in_threadpool(iter([response_bytes]))
            content_type = response.headers.get("content-type", "")
            extra_payload["request_body"] = request_body
            # Downloaded file bodies are reported by size only
            if "json" in content_type:
                extra_payload["response_body"] = self._render_body(response_bytes)
            else:
                extra_payload["response_body"] = f"<{len(response_bytes)} bytes>"

        logger.log(
            level,
            "request method=%s route=%s status=%s duration_ms=%.3f request_id=%s client_ip=%s",
            request.method,
            route,
            status_code,
            duration_ms,
            request_id,
            client_ip or "-",
            extra={"extra": extra_payload},
        )
        return response
