"""Qt network transport for UDJ requests.

One QNetworkAccessManager performs every exchange. Completions arrive through
the manager's single ``finished`` signal, in completion order, on the thread
that owns the transport. Each completion is converted to an HttpReply and
re-emitted on ``reply_received``.
"""

import json
import logging
from typing import Any, cast

from PySide6.QtCore import QByteArray, QObject, QUrl, Signal
from PySide6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

from udjclient.api.protocol import ApiRequest, HttpReply

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000

_METHODS: dict[QNetworkAccessManager.Operation, str] = {
    QNetworkAccessManager.Operation.GetOperation: "GET",
    QNetworkAccessManager.Operation.PostOperation: "POST",
    QNetworkAccessManager.Operation.PutOperation: "PUT",
    QNetworkAccessManager.Operation.DeleteOperation: "DELETE",
    QNetworkAccessManager.Operation.HeadOperation: "HEAD",
}

# Request attribute carrying the JSON-encoded request context
_CONTEXT_ATTRIBUTE = QNetworkRequest.Attribute.User


def _decode_context(value: object) -> dict[str, Any]:
    if not isinstance(value, str) or not value:
        return {}
    try:
        data = json.loads(value)
    except json.JSONDecodeError:
        logger.warning("Discarding undecodable request context")
        return {}
    return cast(dict[str, Any], data) if isinstance(data, dict) else {}


def _reply_method(reply: QNetworkReply) -> str:
    operation = reply.operation()
    if operation == QNetworkAccessManager.Operation.CustomOperation:
        verb = reply.request().attribute(QNetworkRequest.Attribute.CustomVerbAttribute)
        if isinstance(verb, QByteArray):
            return bytes(verb.data()).decode("ascii").upper()
        return str(verb or "").upper()
    return _METHODS.get(operation, "")


def reply_from_qt(reply: QNetworkReply) -> HttpReply:
    """Convert a finished QNetworkReply into an HttpReply."""
    status = reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute)
    headers = tuple(
        (
            bytes(name.data()).decode("latin-1"),
            bytes(value.data()).decode("latin-1"),
        )
        for name, value in reply.rawHeaderPairs()
    )
    error = reply.error()
    error_string = "" if error == QNetworkReply.NetworkError.NoError else reply.errorString()
    request = reply.request()
    return HttpReply(
        method=_reply_method(reply),
        url=request.url().toString(),
        status_code=int(status) if status else 0,
        headers=headers,
        body=bytes(reply.readAll().data()),
        error_string=error_string,
        context=_decode_context(request.attribute(_CONTEXT_ATTRIBUTE)),
    )


class QtNetworkTransport(QObject):
    """Non-blocking HTTP transport backed by QNetworkAccessManager.

    Example:
        transport = QtNetworkTransport(timeout_ms=10_000)
        transport.reply_received.connect(lambda reply: print(reply.status_code))
        transport.send(request)
    """

    reply_received = Signal(object)  # HttpReply

    def __init__(self, timeout_ms: int = DEFAULT_TIMEOUT_MS, parent: QObject | None = None) -> None:
        """Initialize the transport.

        Args:
            timeout_ms: Per-request transfer timeout in milliseconds. 0
                disables the timeout.
            parent: Optional Qt parent.
        """
        super().__init__(parent)
        self._timeout_ms = timeout_ms
        self._manager = QNetworkAccessManager(self)
        self._manager.finished.connect(self._on_finished)
        self._in_flight: set[QNetworkReply] = set()

    @property
    def timeout_ms(self) -> int:
        """Return the per-request timeout in milliseconds."""
        return self._timeout_ms

    def set_timeout(self, timeout_ms: int) -> None:
        """Set the timeout applied to requests sent from now on."""
        self._timeout_ms = max(0, timeout_ms)

    @property
    def pending_count(self) -> int:
        """Return the number of exchanges still in flight."""
        return len(self._in_flight)

    def send(self, request: ApiRequest) -> None:
        """Issue a request without blocking.

        Raises:
            ValueError: If the method is not supported.
        """
        qt_request = QNetworkRequest(QUrl(request.url))
        for name, value in request.headers:
            qt_request.setRawHeader(name.encode("latin-1"), value.encode("latin-1"))
        qt_request.setTransferTimeout(self._timeout_ms)
        qt_request.setAttribute(_CONTEXT_ATTRIBUTE, json.dumps(request.context))

        method = request.method.upper()
        if method == "GET":
            reply = self._manager.get(qt_request)
        elif method == "POST":
            reply = self._manager.post(qt_request, QByteArray(request.body))
        elif method == "PUT":
            reply = self._manager.put(qt_request, QByteArray(request.body))
        elif method == "DELETE":
            reply = self._manager.deleteResource(qt_request)
        else:
            raise ValueError(f"Unsupported HTTP method: {request.method}")

        self._in_flight.add(reply)
        logger.debug("Sent %s %s", method, request.url)

    def abort_all(self) -> None:
        """Abort every in-flight exchange.

        Aborted exchanges still complete through ``reply_received`` as
        transport errors.
        """
        for reply in list(self._in_flight):
            reply.abort()

    def _on_finished(self, reply: QNetworkReply) -> None:
        """Handle the manager's single completion signal."""
        self._in_flight.discard(reply)
        try:
            converted = reply_from_qt(reply)
        finally:
            reply.deleteLater()
        logger.debug("Reply %d for %s %s", converted.status_code, converted.method, converted.url)
        self.reply_received.emit(converted)
