"""Python client for the Netlify Graph endpoint.

Mirrors the generated JavaScript runtime: requests go to
``<host>/graphql?app_id=…&operationName=…&schema_id=…`` and results are
cached by ETag so repeated calls can be answered with ``304 Not Modified``.
"""

import json
from collections import OrderedDict
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from .console import get_logger
from .errors import GraphQLResponseError

DEFAULT_HOST = "https://graph.netlify.com"
CACHE_SIZE = 100


class GraphQLResult(BaseModel):
    """A GraphQL response body."""

    data: Any = None
    errors: list[dict[str, Any]] | None = None


class ETagCache:
    """Least recently used map of request payload → (etag, result)."""

    def __init__(self, max_entries: int = CACHE_SIZE):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, tuple[str, GraphQLResult]] = OrderedDict()

    def get(self, key: str) -> tuple[str, GraphQLResult] | None:
        item = self._entries.get(key)
        if item is not None:
            self._entries.move_to_end(key)
        return item

    def set(self, key: str, etag: str, result: GraphQLResult):
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = (etag, result)

    def __len__(self) -> int:
        return len(self._entries)


def cache_key(payload: dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class NetlifyGraphClient:
    """Executes operations against Netlify Graph.

    Example:
        client = NetlifyGraphClient(site_id="my-site", schema_id="abc123")
        result = await client.fetch(query, "GetUser", {"id": "1"})
        await client.close()
    """

    def __init__(
        self,
        site_id: str,
        schema_id: str,
        host: str = DEFAULT_HOST,
        timeout: float = 30.0,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        cache: ETagCache | None = None,
    ):
        """Initialize the client.

        Args:
            site_id: Site the requests are made for (``app_id``)
            schema_id: Schema the operations were generated against
            host: Host with protocol
            timeout: Request timeout in seconds
            transport: Optional httpx transport (e.g. a mock in tests)
            cache: ETag cache (a fresh one is created by default)
        """
        self.site_id = site_id
        self.schema_id = schema_id
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.cache = cache if cache is not None else ETagCache()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "NetlifyGraphClient":
        return self

    async def __aexit__(self, *_exc_info):
        await self.close()

    def url_for(self, operation_name: str) -> str:
        return (
            f"{self.host}/graphql?app_id={quote(self.site_id)}"
            f"&operationName={quote(operation_name)}&schema_id={quote(self.schema_id)}"
        )

    async def fetch(
        self,
        query: str,
        operation_name: str,
        variables: dict[str, Any] | None = None,
        *,
        access_token: str | None = None,
        fetch_strategy: str = "POST",
    ) -> GraphQLResult:
        """Execute an operation.

        Args:
            query: GraphQL document text
            operation_name: Name of the operation to run
            variables: Operation variables
            access_token: Optional bearer token
            fetch_strategy: "POST" (default) or "GET"

        Returns:
            The parsed response, or the cached result on 304

        Raises:
            GraphQLResponseError: On any status other than 200 or 304
        """
        client = await self._get_client()

        payload = {"query": query, "variables": variables or {}, "operationName": operation_name}
        key = cache_key(payload)
        cached = self.cache.get(key)

        headers = {"If-None-Match": cached[0] if cached else ""}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        url = self.url_for(operation_name)
        body = json.dumps(payload)
        if fetch_strategy == "GET":
            response = await client.get(f"{url}&payload={quote(body)}", headers=headers)
        else:
            response = await client.post(url, content=body, headers=headers)

        if response.status_code == 304:
            if cached is None:
                raise GraphQLResponseError(304, "Not Modified without a cached result")
            get_logger(__name__).debug("Using cached result for %s", operation_name)
            return cached[1]

        if response.status_code != 200:
            raise GraphQLResponseError(response.status_code, response.text)

        result = GraphQLResult.model_validate(response.json())
        etag = response.headers.get("etag")
        if etag:
            self.cache.set(key, etag, result)
        return result
