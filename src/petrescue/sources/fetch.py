"""HTTP fetching with retries."""

import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

logger = structlog.get_logger()

USER_AGENT = "PetRescueBot/0.1 (+https://github.com/petrescue/petrescue; shelter listing aggregator)"
MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5MB


@dataclass(frozen=True)
class FetchResult:
    """Result of fetching a URL."""

    final_url: str
    status_code: int
    text: str | None
    error: str | None = None
    elapsed_ms: int | None = None


def _is_retryable_http_status(status_code: int) -> bool:
    return status_code in {408, 425, 429, 500, 502, 503, 504}


def _should_retry(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return _is_retryable_http_status(exc.response.status_code)
    return False


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(min=1, max=20),
    retry=retry_if_exception(_should_retry),
    reraise=True,
)
def fetch_url(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    accept: str = "text/html",
    timeout_seconds: float = 20.0,
) -> FetchResult:
    """GET a URL. Retryable failures raise after the last attempt; others come back as ``error``."""
    headers = {"User-Agent": USER_AGENT, "Accept": accept}
    start = time.monotonic()

    try:
        with httpx.Client(timeout=timeout_seconds, follow_redirects=True, headers=headers) as client:
            response = client.get(url, params=params)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        if _is_retryable_http_status(status_code):
            logger.warning("Retryable HTTP error", url=url, status=status_code)
            raise
        logger.warning("HTTP error (non-retryable)", url=url, status=status_code)
        return FetchResult(
            final_url=str(e.response.url),
            status_code=status_code,
            text=None,
            error=f"HTTP {status_code}",
        )
    except httpx.TransportError as e:
        logger.warning("Transport error", url=url, error=str(e))
        raise

    content = response.text
    if len(content) > MAX_CONTENT_LENGTH:
        logger.warning("Content truncated", url=url, limit_bytes=MAX_CONTENT_LENGTH)
        content = content[:MAX_CONTENT_LENGTH]

    return FetchResult(
        final_url=str(response.url),
        status_code=response.status_code,
        text=content,
        elapsed_ms=int((time.monotonic() - start) * 1000),
    )
