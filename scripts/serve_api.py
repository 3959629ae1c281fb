"""API 서버 실행 스크립트.

호스트/포트는 설정 파일(configs/app.yaml)과 APP_HOST/APP_PORT 환경변수를 따릅니다.
"""

import os
import sys
from pathlib import Path

import uvicorn

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import get_config  # noqa: E402


def main() -> None:
    cfg = get_config().app
    reload = os.environ.get("APP_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run("api:app", host=cfg.host, port=cfg.port, reload=reload)


if __name__ == "__main__":
    main()
