"""
Выгрузка OpenAPI схемы gateway в openapi/openapi.json (или путь из argv).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

from apps.api_gateway.main import app


def main(argv: list[str]) -> int:
    path = Path(argv[0] if argv else "openapi/openapi.json")
    path.parent.mkdir(parents=True, exist_ok=True)

    schema = app.openapi()
    path.write_text(json.dumps(schema, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    print(f"Wrote {path} ({len(schema.get('paths', {}))} paths)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
