"""모니터링 미들웨어.

FastAPI 미들웨어로 HTTP 요청을 자동 추적합니다.
"""

from __future__ import annotations

import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.core.logging import set_request_id

from .metrics import track_request


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Prometheus 메트릭 수집 미들웨어.

    모든 HTTP 요청의 시간과 상태를 기록하고 요청 ID를 발급합니다.
    """

    def __init__(self, app, exclude_paths: list[str] | None = None):
        """초기화.

        Args:
            app: FastAPI 앱
            exclude_paths: 제외할 경로 목록 (예: ["/metrics", "/healthz"])
        """
        super().__init__(app)
        self.exclude_paths = exclude_paths or ["/metrics", "/healthz"]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """요청 처리 및 메트릭 기록."""
        path = request.url.path

        if path in self.exclude_paths:
            return await call_next(request)

        request_id = set_request_id(request.headers.get("X-Request-ID"))
        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-ID"] = request_id
        finally:
            track_request(
                method=request.method,
                endpoint=self._normalize_path(path),
                status=status_code,
                duration=time.time() - start_time,
            )

        return response

    def _normalize_path(self, path: str) -> str:
        """경로 정규화 (ID 등을 플레이스홀더로 대체).

        예: /accounts/user_overdue -> /accounts/{user_id}
        """
        normalized = []
        for part in path.split("/"):
            if not part:
                continue
            if part.startswith("user_"):
                normalized.append("{user_id}")
            elif part.upper().startswith("TXN"):
                normalized.append("{transaction_id}")
            elif self._is_uuid_like(part):
                normalized.append("{id}")
            else:
                normalized.append(part)

        return "/" + "/".join(normalized)

    def _is_uuid_like(self, s: str) -> bool:
        """UUID 형태 문자열 감지."""
        # 숫자가 섞인 12자 이상의 영숫자 문자열 (UUID, 해시 등), 순수 숫자 제외
        if len(s) < 12 or s.isdigit():
            return False
        if not s.replace("-", "").replace("_", "").isalnum():
            return False
        return any(c.isdigit() for c in s)
