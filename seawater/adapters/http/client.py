"""
JSON API client base for Seawater providers.

Wraps an aiohttp session as an async context manager and retries
transport failures with exponential backoff.
"""

import aiohttp
import asyncio
from typing import Any, Dict, Optional
from seawater.observability.logging_setup import get_logger
from seawater.common.retry import retry_with_backoff

log = get_logger("seawater.http")


class JsonApiClient:
    """JSON HTTP API 클라이언트"""

    def __init__(self,
                 base_url: str,
                 api_key: str = "",
                 timeout: int = 30,
                 max_retries: int = 3):
        """
        초기화합니다.
        
        Args:
            base_url: API 기본 URL
            api_key: API 키 (없으면 인증 헤더 생략)
            timeout: 요청 타임아웃 (초)
            max_retries: 전송 오류 재시도 횟수
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.session: Optional[aiohttp.ClientSession] = None

        log.info(f"{type(self).__name__} 초기화됨 base_url:{self.base_url}")

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self.session = aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        if self.session:
            await self.session.close()
            self.session = None

    async def _make_request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        """
        API 요청을 수행합니다.
        
        Args:
            method: HTTP 메서드
            endpoint: API 엔드포인트
            **kwargs: 추가 요청 매개변수
            
        Returns:
            응답 데이터
        """
        if not self.session:
            raise RuntimeError("세션이 초기화되지 않았습니다. async with를 사용하세요.")

        url = f"{self.base_url}{endpoint}"

        async def _request():
            async with self.session.request(method, url, **kwargs) as response:
                response.raise_for_status()
                return await response.json()

        return await retry_with_backoff(
            _request,
            max_retries=self.max_retries,
            retry_on=(aiohttp.ClientError, asyncio.TimeoutError),
        )
