from __future__ import annotations

import json

from mangum import Mangum

from backend.fastapi_app.main import app


def _safe_get(d, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def handler(event, context):
    stage = _safe_get(event, "requestContext", "stage", default=None)
    method = _safe_get(event, "requestContext", "http", "method", default=None)
    http_path = _safe_get(event, "requestContext", "http", "path", default=None)
    body = event.get("body") or ""

    print(
        json.dumps(
            {
                "diag": "incoming_request",
                "stage": stage,
                "method": method,
                "path": http_path,
                "bodyBytes": len(body.encode("utf-8")),
            },
            ensure_ascii=False,
        )
    )

    # /dev や /prod のステージ名は Mangum 側で剥がして FastAPI に渡す
    base_path = f"/{stage}" if stage and stage != "$default" else None

    asgi = Mangum(app, lifespan="off", api_gateway_base_path=base_path)
    return asgi(event, context)
