# core/csv_json/__init__.py

"""
CSV ⇄ JSON conversion API core package.

- models.py   : Pydantic モデル定義（オプション / 結果 / リクエスト・レスポンス）
- errors.py   : リクエストを中断させる致命的エラー
- parser.py   : トークナイザ（区切り文字・改行の自動判定込み）
- records.py  : ヘッダ処理・レコード組み立て・型変換
- unparser.py : オブジェクト配列 -> CSV
- validator.py: 構造診断
- fetcher.py  : URL からの CSV 取得
- service.py  : operation の振り分け
"""
