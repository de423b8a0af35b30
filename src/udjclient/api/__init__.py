"""API client for the UDJ player service over HTTP/JSON."""

from udjclient.api.client import ServerConnection
from udjclient.api.dispatcher import ReplyDispatcher
from udjclient.api.endpoints import ENDPOINTS, Endpoint, classify
from udjclient.api.protocol import ApiRequest, HttpReply
from udjclient.api.transport import QtNetworkTransport

__all__ = [
    "ENDPOINTS",
    "ApiRequest",
    "Endpoint",
    "HttpReply",
    "QtNetworkTransport",
    "ReplyDispatcher",
    "ServerConnection",
    "classify",
]
