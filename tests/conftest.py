import sys
from pathlib import Path

import pytest

# tests/ から見て 1 つ上 = プロジェクトルート
PROJECT_ROOT = Path(__file__).resolve().parents[1]

# プロジェクトルートを sys.path の先頭に追加
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)


@pytest.fixture
def raw_options():
    """型変換なしでパースするオプション（値を文字列のまま比較したいテスト用）"""
    from core.csv_json.models import ParseOptions

    return ParseOptions(dynamic_typing=False)


@pytest.fixture
def api_client():
    from fastapi.testclient import TestClient

    from backend.fastapi_app.main import app

    return TestClient(app)
