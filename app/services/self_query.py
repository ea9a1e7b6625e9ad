"""
Self-query gateway.

Calls this service's own query endpoints over HTTP and wraps each result in
an envelope with call metadata. Failures (connection errors, timeouts,
non-2xx responses, undecodable bodies) come back as error envelopes and are
never raised to the caller.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import httpx
import structlog

from app.core.config import Settings

logger = structlog.get_logger(__name__)

ORIGIN_SINGLE = "internal-query"
ORIGIN_MULTIPLE = "internal-query-multiple"


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class SelfQueryConfig:
    """Connection settings for the self-query gateway."""
    base_url: str
    timeout_ms: int = 5000
    retry_attempts: int = 0  # extra attempts on transport errors only

    @classmethod
    def from_settings(cls, settings: Settings) -> "SelfQueryConfig":
        return cls(
            base_url=settings.self_query_api_url,
            timeout_ms=settings.SELF_QUERY_TIMEOUT_MS,
            retry_attempts=settings.SELF_QUERY_RETRY_ATTEMPTS,
        )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class SelfQueryGateway:
    """HTTP client for the service's own query surface."""

    def __init__(self, config: SelfQueryConfig, client: Optional[httpx.Client] = None):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        # Same timeout for the connect and read phases
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(config.timeout_seconds))

    def close(self):
        """Close the HTTP client if this gateway created it."""
        if self._owns_client:
            self._client.close()

    # ==================== TRANSPORT ====================

    def _get(self, path: str) -> Tuple[str, int, Any]:
        """
        GET a path under base_url and decode the JSON body.

        Returns (url, status code, payload). Raises httpx.HTTPError or
        ValueError; callers convert those into error envelopes.
        """
        url = f"{self.base_url}{path}"
        attempts = 1 + max(self.config.retry_attempts, 0)

        for attempt in range(1, attempts + 1):
            logger.debug("self_query_request", url=url, attempt=attempt)
            try:
                response = self._client.get(url)
            except httpx.TransportError as e:
                if attempt == attempts:
                    raise
                logger.warning("self_query_retry", url=url, attempt=attempt, error=str(e))
                continue

            response.raise_for_status()
            return url, response.status_code, response.json()

    def _error_envelope(self, origin: str, message: str, error: Exception) -> Dict[str, Any]:
        logger.error("self_query_failed", origin=origin, error_type=type(error).__name__, error=str(error))
        return {
            "origin": origin,
            "error": True,
            "message": f"{message}: {error}",
            "timestamp": _now_millis(),
        }

    def _single(self, path: str, description: str, **extra) -> Dict[str, Any]:
        logger.info("self_query_started", query=description)
        try:
            url, status_code, payload = self._get(path)
            envelope = {
                "origin": ORIGIN_SINGLE,
                "target": url,
                "timestamp": _now_millis(),
                "status": status_code,
                "payload": payload,
            }
            for key, compute in extra.items():
                envelope[key] = compute(payload)
        except (httpx.HTTPError, ValueError, TypeError) as e:
            return self._error_envelope(ORIGIN_SINGLE, "Internal query failed", e)

        logger.info("self_query_completed", query=description, status=status_code)
        return envelope

    # ==================== QUERIES ====================

    def account(self, account_id: int) -> Dict[str, Any]:
        return self._single(f"/accounts/{account_id}", f"account {account_id}")

    def active_accounts(self) -> Dict[str, Any]:
        return self._single(
            "/accounts/active",
            "active accounts",
            total_active_accounts=lambda payload: len(payload or []),
        )

    def statistics(self) -> Dict[str, Any]:
        return self._single("/accounts/statistics", "statistics")

    def full_summary(self) -> Dict[str, Any]:
        """
        Statistics, active accounts and statistics by type in one envelope.
        Any failed call fails the whole summary.
        """
        logger.info("self_query_started", query="full summary")
        try:
            statistics_url, _, statistics = self._get("/accounts/statistics")
            active_url, _, active_accounts = self._get("/accounts/active")
            by_type_url, _, statistics_by_type = self._get("/accounts/statistics/by-type")
            active_accounts = active_accounts or []
            total_active_accounts = len(active_accounts)
        except (httpx.HTTPError, ValueError, TypeError) as e:
            return self._error_envelope(ORIGIN_MULTIPLE, "Failed to build full summary", e)

        logger.info("self_query_completed", query="full summary", queries=3)

        return {
            "origin": ORIGIN_MULTIPLE,
            "timestamp": _now_millis(),
            "targets": [statistics_url, active_url, by_type_url],
            "statistics": statistics,
            "active_accounts": active_accounts,
            "statistics_by_type": statistics_by_type,
            "summary": {
                "total_active_accounts": total_active_accounts,
                "queries_performed": 3,
                "generation_status": "success",
            },
        }
