"""
Place-name search against a Nominatim-compatible service.

This is the only network-facing code in the package. It resolves a free-text
query to candidate boundaries; turning a candidate into a single-polygon
Feature is left to kmlbuilder.builder.
"""

import logging
from typing import List, Optional

import requests

from kmlbuilder import constants
from kmlbuilder.models import SearchResult

logger = logging.getLogger(__name__)


class SearchError(Exception):
    """Raised when the search service cannot be reached or answers badly."""

    pass


def search_places(
    query: str,
    url: str = constants.DEFAULT_SEARCH_URL,
    user_agent: str = constants.DEFAULT_USER_AGENT,
    timeout: int = constants.DEFAULT_SEARCH_TIMEOUT,
    limit: int = constants.DEFAULT_SEARCH_LIMIT,
    session: Optional[requests.Session] = None,
) -> List[SearchResult]:
    """
    Search for places matching 'query', including their boundary GeoJSON.

    Args:
        query: Free-text place name, e.g. "Somnath"
        url: Search endpoint
        user_agent: User-Agent header; Nominatim rejects anonymous clients
        timeout: Request timeout in seconds
        limit: Maximum number of candidates
        session: Optional requests session (connection reuse, testing)

    Returns:
        Candidates in the order the service ranked them. A blank query
        returns an empty list without contacting the service.

    Raises:
        SearchError: On network failure, HTTP error status or a body that is
                     not a JSON list
    """
    if not query or not query.strip():
        return []

    params = {
        "format": "json",
        "q": query.strip(),
        "polygon_geojson": 1,
        "addressdetails": 1,
        "limit": limit,
    }
    http = session or requests
    try:
        response = http.get(url, params=params, headers={"User-Agent": user_agent}, timeout=timeout)
        response.raise_for_status()
        records = response.json()
    except requests.RequestException as e:
        raise SearchError(f"Search for {query!r} failed: {e}") from e
    except ValueError as e:
        raise SearchError(f"Search for {query!r} returned invalid JSON: {e}") from e

    if not isinstance(records, list):
        raise SearchError(f"Search for {query!r} returned an unexpected response")

    logger.info(f"Search for {query!r} returned {len(records)} result(s)")
    return [SearchResult.from_record(r) for r in records]
