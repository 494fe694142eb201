"""
CatalogHttpClient: retrying HTTP client for the movie metadata provider.

Every call is bounded: a per-request timeout plus a bounded number of
retries with exponential backoff. Failures are raised as classified errors
so the caller decides whether to degrade or surface them.

Error Taxonomy:
- TransientError: network issues, timeouts, 5xx (retried)
- QuotaError: 429 (retried)
- AuthError: 401, 403
- NotFoundError: 404
- APIError: anything else
"""

import os
import time
from enum import Enum
from typing import Any, Dict, Optional

import requests

from cinesocial.logging_config import get_logger

logger = get_logger(__name__)


class APIErrorType(Enum):
    """Classification of upstream API errors."""
    TRANSIENT = "transient"
    AUTH = "auth"
    QUOTA = "quota"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class APIError(Exception):
    """Base exception for all upstream API errors."""

    def __init__(self, message: str, error_type: APIErrorType, status_code: Optional[int] = None,
                 original_error: Optional[Exception] = None):
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.original_error = original_error
        super().__init__(message)


class TransientError(APIError):
    def __init__(self, message: str, status_code: Optional[int] = None,
                 original_error: Optional[Exception] = None):
        super().__init__(message, APIErrorType.TRANSIENT, status_code, original_error)


class AuthError(APIError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, APIErrorType.AUTH, status_code)


class QuotaError(APIError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, APIErrorType.QUOTA, status_code)


class NotFoundError(APIError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, APIErrorType.NOT_FOUND, status_code)


_ERROR_CLASSES = {
    APIErrorType.AUTH: AuthError,
    APIErrorType.QUOTA: QuotaError,
    APIErrorType.NOT_FOUND: NotFoundError,
}


class CatalogHttpClient:
    """
    HTTP client for the metadata provider with retry logic and error handling.

    Configuration via environment variables:
    - TMDB_TIMEOUT: Request timeout in seconds (default: 3.0)
    - TMDB_MAX_RETRIES: Maximum retry attempts (default: 3)
    - TMDB_BACKOFF_BASE: Base delay for exponential backoff in seconds (default: 0.5)
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None
    ):
        self.timeout = timeout if timeout is not None else float(os.getenv("TMDB_TIMEOUT", "3.0"))
        self.max_retries = max_retries if max_retries is not None else int(os.getenv("TMDB_MAX_RETRIES", "3"))
        self.backoff_base = backoff_base if backoff_base is not None else float(os.getenv("TMDB_BACKOFF_BASE", "0.5"))

        # Shared session for connection pooling
        self.session = requests.Session()

        logger.info(
            "catalog_client_initialized",
            timeout=self.timeout,
            max_retries=self.max_retries,
            backoff_base=self.backoff_base,
        )

    def _classify_error(self, response: Optional[requests.Response],
                        exception: Optional[Exception]) -> APIErrorType:
        if response is not None:
            status = response.status_code
            if status in (401, 403):
                return APIErrorType.AUTH
            if status == 404:
                return APIErrorType.NOT_FOUND
            if status == 429:
                return APIErrorType.QUOTA
            if 500 <= status < 600:
                return APIErrorType.TRANSIENT
            return APIErrorType.UNKNOWN

        if isinstance(exception, requests.exceptions.RequestException):
            return APIErrorType.TRANSIENT

        return APIErrorType.UNKNOWN

    def _should_retry(self, error_type: APIErrorType, attempt: int) -> bool:
        if attempt >= self.max_retries:
            return False
        return error_type in (APIErrorType.TRANSIENT, APIErrorType.QUOTA)

    def _calculate_backoff(self, attempt: int) -> float:
        # 0.5s, 1s, 2s by default
        return self.backoff_base * (2 ** attempt)

    def _build_error(self, error_type: APIErrorType, message: str,
                     status_code: Optional[int] = None,
                     original_error: Optional[Exception] = None) -> APIError:
        if error_type == APIErrorType.TRANSIENT:
            return TransientError(message, status_code, original_error)
        error_class = _ERROR_CLASSES.get(error_type)
        if error_class is not None:
            return error_class(message, status_code)
        return APIError(message, error_type, status_code, original_error)

    def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        api_name: str = "TMDB"
    ) -> requests.Response:
        """
        Make a GET request with retry logic and error handling.

        Raises:
            AuthError, QuotaError, NotFoundError, TransientError, APIError
        """
        request_timeout = timeout or self.timeout
        attempt = 0

        while True:
            try:
                response = self.session.get(url, params=params, timeout=request_timeout)
            except requests.exceptions.RequestException as e:
                error_type = self._classify_error(None, e)
                logger.warning(
                    "upstream_request_exception",
                    api_name=api_name,
                    attempt=attempt + 1,
                    error=f"{type(e).__name__}: {e}",
                )
                if self._should_retry(error_type, attempt):
                    time.sleep(self._calculate_backoff(attempt))
                    attempt += 1
                    continue
                raise self._build_error(
                    error_type,
                    f"{api_name} request failed: {type(e).__name__}: {e}",
                    None,
                    e,
                ) from e

            if response.ok:
                if attempt > 0:
                    logger.info("upstream_request_recovered", api_name=api_name, attempts=attempt + 1)
                return response

            error_type = self._classify_error(response, None)
            logger.warning(
                "upstream_request_failed",
                api_name=api_name,
                attempt=attempt + 1,
                status_code=response.status_code,
                error_type=error_type.value,
            )
            if self._should_retry(error_type, attempt):
                time.sleep(self._calculate_backoff(attempt))
                attempt += 1
                continue

            raise self._build_error(
                error_type,
                f"{api_name} request failed with status {response.status_code}: {response.text[:200]}",
                response.status_code,
            )

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        """GET and decode the JSON body."""
        response = self.get(url, params=params, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise APIError("Upstream returned a non-JSON body", APIErrorType.UNKNOWN,
                           response.status_code, e) from e
