"""Transport-neutral HTTP exchange types for UDJ communication."""

import json
from dataclasses import dataclass, field
from typing import Any

from udjclient.models.outcome import Headers, Operation

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class ApiRequest:
    """A fully built request, ready to hand to a transport.

    Attributes:
        operation: Operation the request implements.
        method: HTTP method.
        url: Absolute target URL.
        body: Serialized JSON body (empty for bodiless calls).
        headers: Request headers as (name, value) pairs.
        context: Call parameters echoed back with the reply, used to build
            the success result (e.g. which songs were added).
    """

    operation: Operation
    method: str
    url: str
    body: bytes = b""
    headers: Headers = ()
    context: dict[str, Any] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Return a header value by name (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    def json(self) -> Any:
        """Return the decoded JSON body, or None if there is none."""
        if not self.body:
            return None
        return json.loads(self.body.decode("utf-8"))


@dataclass(frozen=True)
class HttpReply:
    """One completed network exchange as delivered by the transport.

    Attributes:
        method: HTTP method of the original request.
        url: URL of the original request.
        status_code: HTTP status, or 0 if no HTTP response was received.
        headers: Response headers, verbatim and in order.
        body: Raw response body.
        error_string: Transport error description (empty on clean exchange).
        context: The originating request's context.
    """

    method: str
    url: str
    status_code: int = 0
    headers: Headers = ()
    body: bytes = b""
    error_string: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def has_http_status(self) -> bool:
        """Return True if the server produced an HTTP response."""
        return self.status_code > 0

    def header(self, name: str) -> str | None:
        """Return a header value by name (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    @classmethod
    def for_request(
        cls,
        request: ApiRequest,
        status_code: int,
        body: Any = None,
        headers: Headers = (),
        error_string: str = "",
    ) -> "HttpReply":
        """Create a reply to a request (useful for fakes and tests).

        Non-bytes bodies are JSON-encoded.
        """
        if body is None:
            raw = b""
        elif isinstance(body, bytes):
            raw = body
        else:
            raw = json.dumps(body).encode("utf-8")
        return cls(
            method=request.method,
            url=request.url,
            status_code=status_code,
            headers=headers,
            body=raw,
            error_string=error_string,
            context=request.context,
        )
