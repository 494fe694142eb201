"""
TMDB movie-metadata provider.

Thin proxy over the TMDB v3 API. Every public function returns the
provider-shaped document (or list of results) on success and degrades to
``None`` (documents) or ``[]`` (lists) when TMDB is unconfigured, slow,
failing or reports the resource missing. Nothing here raises to the caller.
"""

import os
from typing import Any, Dict, List, Optional

from cinesocial.api_client import CatalogHttpClient, APIError, NotFoundError
from cinesocial.cache import get_cache
from cinesocial.errors import UpstreamUnavailable
from cinesocial.logging_config import get_logger
from cinesocial.metrics import track_external_api_call

logger = get_logger(__name__)

TMDB_API_KEY = os.getenv("TMDB_API_KEY")
TMDB_BASE_URL = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")

_tmdb_client: Optional[CatalogHttpClient] = None


def _get_tmdb_client() -> CatalogHttpClient:
    """Get or create the shared TMDB client instance."""
    global _tmdb_client
    if _tmdb_client is None:
        _tmdb_client = CatalogHttpClient()
    return _tmdb_client


def _request(path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """
    Call TMDB and return the decoded document.

    Returns None when TMDB answers 404. Raises UpstreamUnavailable for every
    other failure.
    """
    if not TMDB_API_KEY:
        raise UpstreamUnavailable("TMDB API key not configured", path=path)

    query = dict(params or {})
    query["api_key"] = TMDB_API_KEY

    try:
        return _get_tmdb_client().get_json(f"{TMDB_BASE_URL}{path}", params=query, api_name="TMDB")
    except NotFoundError:
        return None
    except APIError as e:
        raise UpstreamUnavailable(e.message, original_error=e, path=path) from e


@track_external_api_call("tmdb")
def _fetch(path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """Cached, failure-absorbing wrapper around _request."""
    cache = get_cache()
    cached = cache.get(path, params)
    if cached is not None:
        return cached

    try:
        document = _request(path, params)
    except UpstreamUnavailable as e:
        logger.error("tmdb_unavailable", path=path, error=e.message)
        return None
    except Exception as e:
        logger.error("tmdb_unexpected_error", path=path, error=str(e), exc_info=True)
        return None

    if document is None:
        logger.info("tmdb_not_found", path=path)
        return None

    cache.set(path, document, params)
    return document


def _results(document: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not document:
        return []
    return document.get("results") or []


def get_movie(movie_id: str) -> Optional[Dict[str, Any]]:
    """Movie details with credits and release dates, or None."""
    return _fetch(f"/movie/{str(movie_id).strip()}", {"append_to_response": "credits,release_dates"})


def search_movies(query: str, page: int = 1) -> Optional[Dict[str, Any]]:
    """Paginated search document (``page``, ``results``, ``total_pages``...)."""
    return _fetch("/search/movie", {"query": query, "page": page})


def search_people(query: str, page: int = 1) -> Optional[Dict[str, Any]]:
    return _fetch("/search/person", {"query": query, "page": page})


def get_trending() -> List[Dict[str, Any]]:
    """This week's trending movies."""
    return _results(_fetch("/trending/movie/week"))


def get_top_rated() -> List[Dict[str, Any]]:
    return _results(_fetch("/movie/top_rated"))


def get_person(person_id: str) -> Optional[Dict[str, Any]]:
    return _fetch(f"/person/{str(person_id).strip()}")


def get_person_credits(person_id: str) -> Optional[Dict[str, Any]]:
    return _fetch(f"/person/{str(person_id).strip()}/movie_credits")


def search_results(document: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """The ``results`` list of a search document, ``[]`` when absent."""
    return _results(document)
