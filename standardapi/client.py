"""StandardAPI HTTP client.

The client builds :class:`Request` descriptors and hands them to ``httpx``.
It does not retry; errors are raised as :mod:`standardapi.exceptions`.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from .encoding import encode
from .exceptions import BadBody, BadStatus, BadUrl, NetworkError, Timeout
from .query import EMPTY_QUERY, Query
from .types import Schema

logger = logging.getLogger(__name__)

Decoder = Callable[[Any], Any]

#: Errors raised by a decoder that mean "this body does not fit".
DECODE_ERRORS = (ValueError, KeyError, TypeError, AttributeError)


@dataclass(frozen=True)
class Request:
    """Description of a single API request.

    Args:
        method: HTTP method.
        path: Path relative to the client's base URL, including any query string.
        headers: Extra headers, merged over the client's default headers.
        body: JSON-serializable request body.
        timeout: Timeout in seconds, overrides the client's default.
        expect: Decodes the parsed JSON response body.
        tracker: Opaque cancellation token, passed through unchanged.
    """

    method: str
    path: str
    headers: tuple[tuple[str, str], ...] = ()
    body: Any = None
    timeout: float | None = None
    expect: Decoder | None = None
    tracker: Any = None


def resolve(request: Request, response: httpx.Response) -> Any:
    """Turn a response into the decoded value of the request.

    :raises BadStatus: for a non-2xx response.
    :raises BadBody: when the body is not JSON or the decoder rejects it.
    """
    if not response.is_success:
        raise BadStatus(response.status_code, response.text)

    if not response.content:
        data = None
    else:
        try:
            data = response.json()
        except ValueError as e:
            raise BadBody(e) from e

    if request.expect is None:
        return data
    try:
        return request.expect(data)
    except DECODE_ERRORS as e:
        raise BadBody(e) from e


def with_query(path: str, query: Query | None) -> str:
    """Append the encoded query to a path."""
    if query is None or query.is_empty:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{httpx.QueryParams(encode([], query))}"


def _transport_error(request: Request, url: str, error: httpx.TransportError) -> Exception:
    if isinstance(error, httpx.UnsupportedProtocol):
        return BadUrl(url)
    elif isinstance(error, httpx.TimeoutException):
        return Timeout()
    else:
        return NetworkError(f"{request.method} {url} failed: {error}")


class _BaseClient:
    def __init__(
        self,
        base_url: str,
        headers: Mapping[str, str] | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = dict(headers or {})
        self.timeout = timeout

    def url(self, path: str, query: Query | None = None) -> str:
        """Absolute URL for a path, with the query encoded into it."""
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{with_query(path, query)}"

    def request(
        self,
        method: str,
        path: str,
        *,
        query: Query | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        expect: Decoder | None = None,
        tracker: Any = None,
        timeout: float | None = None,
    ) -> Request:
        """Build a request descriptor; ``query`` is encoded into the path."""
        return Request(
            method=method.upper(),
            path=with_query(path, query),
            headers=tuple((headers or {}).items()),
            body=body,
            timeout=timeout,
            expect=expect,
            tracker=tracker,
        )

    def query_request(
        self, path: str, query: Query = EMPTY_QUERY, expect: Decoder | None = None, **kwargs: Any
    ) -> Request:
        """Request for reading a resource with a query."""
        return self.request("GET", path, query=query, expect=expect, **kwargs)

    def schema_request(self, path: str = "/schema", **kwargs: Any) -> Request:
        """Request for the schema endpoint, decoded into a :class:`Schema`."""
        return self.request("GET", path, expect=Schema.from_response, **kwargs)

    def _build(self, request: Request) -> tuple[str, dict[str, Any]]:
        url = self.url(request.path)
        headers = {"Accept": "application/json", **self.headers, **dict(request.headers)}
        kwargs: dict[str, Any] = {
            "headers": headers,
            "timeout": request.timeout if request.timeout is not None else self.timeout,
        }
        if request.body is not None:
            kwargs["json"] = request.body
        if request.tracker is not None:
            kwargs["extensions"] = {"tracker": request.tracker}
        logger.debug("%s %s", request.method, url)
        return url, kwargs


class StandardAPIClient(_BaseClient):
    """HTTP client for a StandardAPI server.

    Args:
        base_url: Base URL of the API (e.g., "http://localhost:3000").
        headers: Headers sent with every request.
        timeout: Default request timeout in seconds.
        http: An ``httpx.Client`` to send requests with. When omitted,
            the client creates and closes its own.

    Example:
        >>> client = StandardAPIClient("http://localhost:3000")
        >>> accounts = client.query("/accounts", Query(limit=10, where=eq("name", "x")))
        >>> schema = client.get_schema()
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float = 30.0,
        http: httpx.Client | None = None,
    ):
        super().__init__(base_url, headers=headers, timeout=timeout)
        self._owns_client = http is None
        self._client = http if http is not None else httpx.Client()

    def close(self) -> None:
        """Close the HTTP client, if it was created by this client."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "StandardAPIClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def send(self, request: Request) -> Any:
        """Send a request and return its decoded response."""
        url, kwargs = self._build(request)
        try:
            response = self._client.request(request.method, url, **kwargs)
        except httpx.TransportError as e:
            raise _transport_error(request, url, e) from e
        except httpx.InvalidURL as e:
            raise BadUrl(url) from e
        return resolve(request, response)

    def query(
        self, path: str, query: Query = EMPTY_QUERY, expect: Decoder | None = None, **kwargs: Any
    ) -> Any:
        """Read a resource.

        Args:
            path: Resource path, e.g. "/accounts".
            query: Pagination, order, filter and includes.
            expect: Decoder for the JSON body.

        Example:
            >>> client.query(
            ...     "/accounts",
            ...     Query(limit=10, order=[("name", "asc")], includes=[Include("photos")]),
            ... )
        """
        return self.send(self.query_request(path, query, expect, **kwargs))

    def get_schema(self, path: str = "/schema") -> Schema:
        """Get the models and routes the API exposes."""
        return self.send(self.schema_request(path))

    def create(self, path: str, body: Any, expect: Decoder | None = None, **kwargs: Any) -> Any:
        """Create a record."""
        return self.send(self.request("POST", path, body=body, expect=expect, **kwargs))

    def update(self, path: str, body: Any, expect: Decoder | None = None, **kwargs: Any) -> Any:
        """Update a record."""
        return self.send(self.request("PATCH", path, body=body, expect=expect, **kwargs))

    def delete(self, path: str, expect: Decoder | None = None, **kwargs: Any) -> Any:
        """Delete a record."""
        return self.send(self.request("DELETE", path, expect=expect, **kwargs))


class AsyncStandardAPIClient(_BaseClient):
    """Async HTTP client for a StandardAPI server.

    Same interface as StandardAPIClient but uses async/await.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float = 30.0,
        http: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, headers=headers, timeout=timeout)
        self._owns_client = http is None
        self._client = http if http is not None else httpx.AsyncClient()

    async def close(self) -> None:
        """Close the HTTP client, if it was created by this client."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncStandardAPIClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def send(self, request: Request) -> Any:
        """Send a request asynchronously and return its decoded response."""
        url, kwargs = self._build(request)
        try:
            response = await self._client.request(request.method, url, **kwargs)
        except httpx.TransportError as e:
            raise _transport_error(request, url, e) from e
        except httpx.InvalidURL as e:
            raise BadUrl(url) from e
        return resolve(request, response)

    async def query(
        self, path: str, query: Query = EMPTY_QUERY, expect: Decoder | None = None, **kwargs: Any
    ) -> Any:
        """Read a resource asynchronously."""
        return await self.send(self.query_request(path, query, expect, **kwargs))

    async def get_schema(self, path: str = "/schema") -> Schema:
        """Get the models and routes the API exposes."""
        return await self.send(self.schema_request(path))

    async def create(self, path: str, body: Any, expect: Decoder | None = None, **kwargs: Any) -> Any:
        return await self.send(self.request("POST", path, body=body, expect=expect, **kwargs))

    async def update(self, path: str, body: Any, expect: Decoder | None = None, **kwargs: Any) -> Any:
        return await self.send(self.request("PATCH", path, body=body, expect=expect, **kwargs))

    async def delete(self, path: str, expect: Decoder | None = None, **kwargs: Any) -> Any:
        return await self.send(self.request("DELETE", path, expect=expect, **kwargs))
