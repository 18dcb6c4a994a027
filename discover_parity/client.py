"""
TMDB API client for the parity suite.

Handles all TMDB API interactions including:
- Rate limiting (35 requests/second by default)
- Retry logic with exponential backoff
- Pagination of discover queries
- Fallback to unfiltered endpoints with client-side filtering
"""

import random
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, List, Optional, Sequence, Tuple

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import Config
from .exceptions import APIRequestError
from .filters import apply_client_filters
from .models import DiscoverFilters
from .schemas import DiscoverResponse, GenreListResponse
from .utils import RequestThrottle, setup_logger

DISCOVER_ENDPOINT = "/discover/movie"

# Tried in order when the filtered discover query is rejected
FALLBACK_ENDPOINTS = (
    "/discover/movie",
    "/movie/popular",
    "/movie/now_playing",
)

SANITY_ENDPOINTS = (
    "/configuration",
    "/genre/movie/list",
    "/discover/movie",
    "/movie/popular",
    "/movie/now_playing",
)

# TMDB never serves past page 500
MAX_TMDB_PAGES = 500

# Used when a 429 carries no usable Retry-After header
DEFAULT_RETRY_AFTER = 10.0


def retry_after_seconds(value: Optional[str], default: float = DEFAULT_RETRY_AFTER) -> float:
    """
    Seconds to wait from a Retry-After header.

    The header is either a number of seconds or an HTTP date; anything
    unparseable falls back to the default.
    """
    if value is None:
        return default
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        pass
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return default
    if retry_at is None:
        return default
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(0.0, (retry_at - datetime.now(timezone.utc)).total_seconds())


class TMDBClient:
    """
    Handles all TMDB API interactions.

    Responsibilities:
    - Rate limiting and retry with exponential backoff and jitter
    - Discover queries with pagination
    - Endpoint fallback when a filtered query is rejected
    """

    def __init__(self, config: Config):
        self.config = config
        self.session = self._create_session()
        self.throttle = RequestThrottle(config.rate_limit_per_second)
        self.logger = setup_logger("tmdb_client", config.log_dir)

    def _create_session(self) -> requests.Session:
        """Create requests session with retry configuration."""
        session = requests.Session()

        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,  # Don't raise, let us handle it
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        session.headers.update(self.config.get_headers())

        return session

    def _calculate_backoff(self, retry_count: int, base_delay: float = 1.0) -> float:
        """
        Calculate backoff delay with exponential increase and jitter.

        Args:
            retry_count: Current retry attempt number
            base_delay: Base delay in seconds

        Returns:
            Delay in seconds with jitter
        """
        delay = base_delay * (2 ** retry_count)
        jitter = delay * 0.25 * (2 * random.random() - 1)
        return min(delay + jitter, 30)

    def _request(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        _retry_count: int = 0,
    ) -> Optional[dict]:
        """
        Make rate-limited API request with retry on transient errors.

        Args:
            endpoint: API endpoint (e.g., '/discover/movie')
            params: Query parameters
            _retry_count: Internal retry counter (do not set manually)

        Returns:
            JSON response or None if the request was rejected
        """
        max_retries = self.config.max_retries

        if _retry_count >= max_retries:
            self.logger.error(f"Max retries ({max_retries}) exceeded for {endpoint}")
            return None

        self.throttle.wait()

        url = f"{self.config.base_url}{endpoint}"
        query = dict(params or {})
        query.update(self.config.get_auth_params())

        try:
            response = self.session.get(url, params=query, timeout=self.config.request_timeout)

            if response.status_code == 200:
                return response.json()

            if response.status_code == 429:
                retry_after = retry_after_seconds(response.headers.get("Retry-After"))
                wait_time = retry_after + random.uniform(0.5, 1.5)
                self.logger.warning(
                    f"Rate limited (429), waiting {wait_time:.1f}s "
                    f"(retry {_retry_count + 1}/{max_retries})"
                )
                time.sleep(wait_time)
                return self._request(endpoint, params, _retry_count + 1)

            if response.status_code >= 500:
                backoff = self._calculate_backoff(_retry_count)
                self.logger.warning(
                    f"Server error ({response.status_code}), backing off {backoff:.1f}s "
                    f"(retry {_retry_count + 1}/{max_retries})"
                )
                time.sleep(backoff)
                return self._request(endpoint, params, _retry_count + 1)

            # 401/404/422 etc. - the query itself was rejected, don't retry
            self.logger.error(f"Client error ({response.status_code}) for {endpoint}")
            return None

        except requests.exceptions.Timeout:
            backoff = self._calculate_backoff(_retry_count)
            self.logger.warning(
                f"Timeout for {endpoint}, backing off {backoff:.1f}s "
                f"(retry {_retry_count + 1}/{max_retries})"
            )
            time.sleep(backoff)
            return self._request(endpoint, params, _retry_count + 1)

        except requests.exceptions.ConnectionError:
            backoff = self._calculate_backoff(_retry_count, base_delay=2.0)
            self.logger.warning(
                f"Connection error for {endpoint}, backing off {backoff:.1f}s "
                f"(retry {_retry_count + 1}/{max_retries})"
            )
            time.sleep(backoff)
            return self._request(endpoint, params, _retry_count + 1)

        except requests.exceptions.RequestException as e:
            self.logger.error(f"Request error for {endpoint}: {e}")
            return None

        except ValueError as e:
            self.logger.error(f"Invalid JSON from {endpoint}: {e}")
            return None

    def _fetch_page(
        self, endpoint: str, params: dict, page: int
    ) -> Optional[DiscoverResponse]:
        data = self._request(endpoint, params={**params, "page": page})
        if data is None:
            return None
        try:
            return DiscoverResponse.model_validate(data)
        except ValidationError as e:
            self.logger.error(f"Unexpected response shape from {endpoint}: {e}")
            return None

    def discover(self, filters: DiscoverFilters, page: int = 1) -> Optional[DiscoverResponse]:
        """
        Run one filtered discover query.
        Uses: /discover/movie?sort_by=...&with_genres=...&primary_release_date.gte=...

        Args:
            filters: Genre, date range and sort order
            page: Page number (1-indexed)

        Returns:
            DiscoverResponse, or None if the query was rejected
        """
        return self._fetch_page(DISCOVER_ENDPOINT, filters.to_params(), page)

    def _collect_pages(
        self,
        endpoint: str,
        params: dict,
        max_pages: int,
    ) -> Optional[List[dict]]:
        """
        Collect results from page 1 up to max_pages.

        Returns None if the first page is rejected. A rejection on a later
        page keeps what was collected so far.
        """
        results: List[dict] = []
        last_page = min(max_pages, MAX_TMDB_PAGES)

        for page in range(1, last_page + 1):
            response = self._fetch_page(endpoint, params, page)
            if response is None:
                if page == 1:
                    return None
                self.logger.warning(f"{endpoint} page {page} rejected, keeping {len(results)} results")
                break

            results.extend(response.results)
            if response.is_last_page:
                break

        return results

    def discover_all_pages(self, filters: DiscoverFilters, max_pages: Optional[int] = None) -> List[dict]:
        """
        Get discover results across pages.

        Args:
            filters: Genre, date range and sort order
            max_pages: Page cap (defaults to filters.max_pages)

        Returns:
            Raw result dictionaries in API order (empty if rejected)
        """
        pages = max_pages or filters.max_pages
        results = self._collect_pages(DISCOVER_ENDPOINT, filters.to_params(), pages)
        if results is None:
            return []
        self.logger.info(f"Discover {filters.describe()}: {len(results)} results")
        return results

    def discover_with_fallback(
        self,
        filters: DiscoverFilters,
        max_pages: Optional[int] = None,
        fallback_endpoints: Sequence[str] = FALLBACK_ENDPOINTS,
    ) -> Tuple[List[dict], str]:
        """
        Discover with endpoint fallback.

        Tries the filtered discover query first. If it is rejected, each
        fallback endpoint is tried without server-side filters; the first
        one that answers wins and the filters are applied locally.

        Args:
            filters: Genre, date range and sort order
            max_pages: Page cap (defaults to filters.max_pages)
            fallback_endpoints: Endpoints to try, in order

        Returns:
            Tuple of (raw results, endpoint that served them)

        Raises:
            APIRequestError: If every endpoint was rejected
        """
        pages = max_pages or filters.max_pages

        results = self._collect_pages(DISCOVER_ENDPOINT, filters.to_params(), pages)
        if results is not None:
            return results, DISCOVER_ENDPOINT

        self.logger.warning(f"Filtered discover rejected for {filters.describe()}, trying fallbacks")
        tried = [DISCOVER_ENDPOINT]

        for endpoint in fallback_endpoints:
            tried.append(endpoint)
            raw = self._collect_pages(endpoint, {}, pages)
            if raw is None:
                self.logger.warning(f"Fallback {endpoint} rejected")
                continue

            filtered = apply_client_filters(raw, filters)
            self.logger.info(
                f"Fallback {endpoint}: {len(raw)} results, {len(filtered)} after client-side filters"
            )
            return filtered, endpoint

        raise APIRequestError(tried)

    def get_genres(self) -> Dict[int, str]:
        """
        Get the movie genre list.
        Uses: /genre/movie/list

        Returns:
            Mapping of genre id to name (empty on error)
        """
        data = self._request("/genre/movie/list")
        if not data:
            return {}
        try:
            return GenreListResponse.model_validate(data).as_mapping()
        except ValidationError as e:
            self.logger.error(f"Unexpected genre list shape: {e}")
            return {}

    def probe_endpoints(self, endpoints: Sequence[str] = SANITY_ENDPOINTS) -> Dict[str, bool]:
        """
        Check which endpoints accept the configured credentials.

        Returns:
            Mapping of endpoint to whether it answered successfully
        """
        status = {}
        for endpoint in endpoints:
            ok = self._request(endpoint) is not None
            status[endpoint] = ok
            self.logger.info(f"Probe {endpoint}: {'OK' if ok else 'FAILED'}")
        return status

    def test_connection(self) -> bool:
        """Test API credentials, falling back to the genre list endpoint."""
        if self._request("/configuration") is not None:
            return True
        self.logger.warning("/configuration failed, trying /genre/movie/list")
        return bool(self.get_genres())
