"""
Nexar Supply API client.

Handles the OAuth2 client-credentials exchange and the component search
GraphQL query. The bearer token is fetched lazily on the first search and
reused for the lifetime of the client; it is never refreshed.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import (
    ApiError,
    ApiRequestError,
    AuthenticationError,
    ConfigurationError,
    InvalidArgumentError,
)
from .models import Part, normalize_search_response

logger = logging.getLogger(__name__)

TOKEN_URL = "https://identity.nexar.com/connect/token"
API_URL = "https://api.nexar.com/graphql"
TOKEN_SCOPE = "supply"

TOKEN_TIMEOUT = 10.0
REQUEST_TIMEOUT = 30.0

DEFAULT_LIMIT = 10

SEARCH_PARTS_QUERY = """
query SearchParts($query: String!, $limit: Int!) {
  supSearch(q: $query, limit: $limit) {
    results {
      part {
        mpn
        manufacturer {
          name
        }
        shortDescription
        medianPrice1000 {
          price
          currency
        }
        specs {
          attribute {
            shortname
          }
          value {
            text
          }
        }
        bestDatasheet {
          url
        }
      }
    }
  }
}
"""


class NexarClient:
    """
    Client for the Nexar Supply GraphQL API.

    Searches return ``Part`` records in the order Nexar ranks them.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        http_client: Optional[httpx.AsyncClient] = None,
        token_url: str = TOKEN_URL,
        api_url: str = API_URL,
    ):
        """
        Initialize the client.

        Args:
            client_id: Nexar application client ID
            client_secret: Nexar application client secret
            http_client: Shared AsyncClient to send requests with. When omitted
                a short-lived client is opened for every request.
            token_url: Identity endpoint
            api_url: GraphQL endpoint

        Raises:
            ConfigurationError: If either credential is empty
        """
        if not client_id or not client_secret:
            raise ConfigurationError("NEXAR_CLIENT_ID and NEXAR_CLIENT_SECRET must be set")

        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.api_url = api_url
        self._http_client = http_client
        self._access_token: Optional[str] = None

    async def _post(self, url: str, timeout: float, **kwargs: Any) -> httpx.Response:
        if self._http_client is not None:
            response = await self._http_client.post(url, timeout=timeout, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(url, **kwargs)
        response.raise_for_status()
        return response

    async def acquire_token(self) -> str:
        """
        Return the cached bearer token, fetching it on first use.

        Raises:
            AuthenticationError: If the identity endpoint fails or rejects the request
        """
        if self._access_token:
            return self._access_token

        logger.debug("Requesting Nexar access token")
        try:
            response = await self._post(
                self.token_url,
                TOKEN_TIMEOUT,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "scope": TOKEN_SCOPE,
                },
            )
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Nexar authentication failed: {e}") from e

        self._access_token = response.json()["access_token"]
        return self._access_token

    async def search_components(self, query: str, limit: int = DEFAULT_LIMIT) -> List[Part]:
        """
        Search for components.

        Args:
            query: Free-text description of the component needed
            limit: Maximum number of results (default: 10)

        Returns:
            Matching parts, in upstream relevance order

        Raises:
            InvalidArgumentError: If query is blank or limit is not a positive integer
            AuthenticationError: If no token could be obtained
            ApiError: If the response carries GraphQL errors
            ApiRequestError: If the request itself failed
        """
        if not isinstance(query, str) or not query.strip():
            raise InvalidArgumentError("query must be a non-empty string")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidArgumentError("limit must be a positive integer")

        token = await self.acquire_token()

        try:
            response = await self._post(
                self.api_url,
                REQUEST_TIMEOUT,
                json={
                    "query": SEARCH_PARTS_QUERY,
                    "variables": {"query": query, "limit": limit},
                },
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise ApiRequestError(f"Nexar API request failed: {e}") from e

        payload: Dict[str, Any] = response.json()

        # an empty errors list still marks the response as failed
        errors = payload.get("errors")
        if errors is not None:
            raise ApiError([str(error.get("message") or "") for error in errors])

        parts = normalize_search_response(payload)
        logger.debug("Nexar search %r returned %d parts", query, len(parts))
        return parts
