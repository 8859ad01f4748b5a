from __future__ import annotations

import sys
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# ============================================================
# プロジェクトルートを sys.path に追加
# （Lambda / uvicorn どちらでも core パッケージを解決できるように）
# ============================================================
ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from core.csv_json.errors import CsvJsonError, FetchError  # noqa: E402
from core.csv_json.models import CsvJsonRequest  # noqa: E402
from core.csv_json.service import process_request  # noqa: E402

API_VERSION = "0.1.0"

# ============================================================
# API Gateway 側で /csv をプレフィックスとしてルーティングしているため、
# FastAPI には root_path="/csv" を指定し、ルート定義は /v0/... にする
# ============================================================
app = FastAPI(
    title="CSV JSON Converter API",
    version=API_VERSION,
    description="CSV <-> JSON conversion and CSV structure validation API (v0.1)",
    root_path="/csv",
)


@app.exception_handler(CsvJsonError)
async def csv_json_error_handler(_: Request, exc: CsvJsonError) -> JSONResponse:
    # 取得先の障害は上流エラーとして 502、それ以外はリクエスト不備として 400
    status_code = 502 if isinstance(exc, FetchError) else 400
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {
                "code": exc.code,
                "message": exc.message,
            },
            "meta": {
                "version": API_VERSION,
            },
        },
    )


# NOTE:
# URL 取得でブロックしうるため同期関数で定義し、スレッドプールで実行させる
@app.post("/v0/convert")
def csv_json_endpoint(payload: CsvJsonRequest):
    response = process_request(payload)
    return response.model_dump(by_alias=True)
