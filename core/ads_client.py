"""
Async HTTP client for the ads backend.

The backend is a thin layer over the `ads` table:

    GET  /ads?limit=200&offset=0  -> {"data": [...], "count": 1234}
    POST /ads                     -> 201 {"data": {...}}
    GET  /health                  -> {"ok": true}

Rows come back ordered by date ascending. Features:
- Connection pooling with httpx
- Exponential backoff retry (3 attempts)
- Circuit breaker (opens after 5 consecutive failures)
- Request correlation IDs for tracing
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from core.config import config
from core.exceptions import RowSourceAPIError, RowSourceConnectionError, RowSourceDataError
from core.models import AdEventRow
from core.observability import Timer, get_correlation_id, get_logger, metrics
from core.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitOpenError,
    RetryConfig,
    retry_with_backoff,
)
from core.validators import validate_ad_row, validate_limit, validate_offset

logger = get_logger(__name__)

RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay=1.0,
    max_delay=30.0,
    exponential_base=2.0
)

CIRCUIT_BREAKER_CONFIG = CircuitBreakerConfig(
    failure_threshold=5,
    recovery_timeout=60.0,
    half_open_requests=1
)


@dataclass(frozen=True)
class AdsPage:
    """One slice of rows plus the backend's total row count."""
    rows: List[AdEventRow]
    count: Optional[int] = None


class AdsApiClient:
    """
    Row source backed by the ads HTTP backend.

    Usage:
        async with AdsApiClient() as client:
            rows = await client.fetch_rows(limit=1000)

        # Or with manual lifecycle:
        client = AdsApiClient()
        await client.connect()
        try:
            rows = await client.fetch_rows(limit=1000)
        finally:
            await client.close()
    """

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        retry_config: RetryConfig = None,
        circuit_breaker: CircuitBreaker = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Backend URL (defaults to config.backend.base_url)
            timeout: Request timeout in seconds
            retry_config: Retry behaviour for network failures
            circuit_breaker: Breaker shared across requests of this client
        """
        self.base_url = (base_url or config.backend.base_url).rstrip("/")
        self.timeout = timeout or config.backend.request_timeout
        self.retry_config = retry_config or RETRY_CONFIG
        self.circuit_breaker = circuit_breaker or CircuitBreaker("ads_backend", CIRCUIT_BREAKER_CONFIG)
        self._client: Optional[httpx.AsyncClient] = None

        if not self.base_url:
            raise ValueError("ADS_BACKEND_URL is required")

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def connect(self) -> None:
        """Create HTTP client with connection pooling."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                limits=httpx.Limits(
                    max_keepalive_connections=5,
                    max_connections=10,
                )
            )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AdsApiClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make HTTP request to the backend with retry and circuit breaker.

        Raises:
            RowSourceConnectionError: Network/timeout errors after retries
            RowSourceAPIError: Backend returned error response
            CircuitOpenError: Circuit breaker is open
        """
        metrics.record_call(f"ads_backend {method} {endpoint}")
        try:
            return await self.circuit_breaker.call(
                retry_with_backoff,
                self._do_request, method, endpoint, params, json,
                config=self.retry_config,
                retryable_exceptions=(RowSourceConnectionError,),
                operation=f"{method} {endpoint}",
                failure_exceptions=(RowSourceAPIError, RowSourceConnectionError),
            )
        except (RowSourceAPIError, RowSourceConnectionError, CircuitOpenError) as e:
            metrics.record_error(type(e).__name__)
            raise

    async def _do_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Execute a single HTTP request (called by retry wrapper)."""
        if not self._client:
            await self.connect()

        url = f"{self.base_url}/{endpoint}"

        request_headers = {}
        correlation_id = get_correlation_id()
        if correlation_id:
            request_headers["X-Request-ID"] = correlation_id

        try:
            with Timer(f"ads_backend_{endpoint}", logger):
                response = await self._client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json,
                    headers=request_headers if request_headers else None,
                )
        except httpx.TimeoutException as e:
            logger.error(
                f"Request timeout: {method} {endpoint}",
                extra={"endpoint": endpoint, "timeout": self.timeout}
            )
            raise RowSourceConnectionError(
                f"Request timeout after {self.timeout}s",
                retry_after=5
            ) from e
        except httpx.RequestError as e:
            logger.error(
                f"Request failed: {method} {endpoint} - {e}",
                extra={"endpoint": endpoint, "error": str(e)}
            )
            raise RowSourceConnectionError(f"Request to {endpoint} failed", str(e)) from e

        if response.status_code >= 400:
            error_text = _error_message(response)
            logger.error(
                f"Backend error {response.status_code}: {error_text}",
                extra={"endpoint": endpoint, "status_code": response.status_code}
            )
            raise RowSourceAPIError(
                f"Backend returned {response.status_code}",
                status_code=response.status_code,
                details=error_text
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RowSourceDataError(
                "Response is not valid JSON",
                details=response.text[:200],
                expected="JSON object",
                got="text",
            ) from e

        if not isinstance(body, dict):
            raise RowSourceDataError(
                "Invalid response type",
                expected="dict",
                got=type(body).__name__
            )
        return body

    # ═══════════════════════════════════════════════════════════════════════════
    # ROW METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    async def fetch_page(self, limit: int = None, offset: int = 0) -> AdsPage:
        """
        Fetch one slice of rows with the backend's total count.

        Args:
            limit: Rows to fetch (default: config.backend.fetch_limit)
            offset: Rows to skip

        Returns:
            AdsPage with parsed rows in backend (date ascending) order
        """
        limit = validate_limit(limit if limit is not None else config.backend.fetch_limit)
        offset = validate_offset(offset)

        body = await self._request("GET", "ads", params={"limit": limit, "offset": offset})

        data = body.get("data")
        if data is None:
            raise RowSourceDataError(
                "Response missing 'data' field",
                expected="list",
                got="None"
            )
        if not isinstance(data, list):
            raise RowSourceDataError(
                "Response 'data' field is not a list",
                expected="list",
                got=type(data).__name__
            )

        rows = []
        for item in data:
            if not isinstance(item, dict):
                raise RowSourceDataError(
                    "Row is not an object",
                    expected="dict",
                    got=type(item).__name__
                )
            rows.append(AdEventRow.from_api(item))

        count = body.get("count")
        return AdsPage(rows=rows, count=count if isinstance(count, int) else None)

    async def fetch_rows(self, limit: int = None, offset: int = 0) -> List[AdEventRow]:
        """Fetch one slice of rows (RowSource interface)."""
        page = await self.fetch_page(limit, offset)
        return page.rows

    async def count_rows(self) -> int:
        """Total number of rows in the table."""
        page = await self.fetch_page(limit=1, offset=0)
        if page.count is None:
            raise RowSourceDataError(
                "Response missing 'count' field",
                expected="int",
                got="None"
            )
        return page.count

    async def insert_row(self, row: Union[AdEventRow, Dict[str, Any]]) -> AdEventRow:
        """
        Insert one row and return it as stored (with its id).

        Raises:
            ValidationError: If the row is invalid (nothing is sent)
        """
        payload = validate_ad_row(row.to_api() if isinstance(row, AdEventRow) else row)
        body = await self._request("POST", "ads", json=payload)

        stored = body.get("data")
        if not isinstance(stored, dict):
            raise RowSourceDataError(
                "Insert response missing 'data' object",
                expected="dict",
                got=type(stored).__name__
            )
        logger.info("Inserted ad row", extra={"row_id": stored.get("id")})
        return AdEventRow.from_api(stored)

    async def health(self) -> bool:
        """True when the backend answers its health check."""
        body = await self._request("GET", "health")
        return bool(body.get("ok"))


def _error_message(response: httpx.Response) -> str:
    """Backend errors are {"error": "..."}; fall back to raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text[:500]
