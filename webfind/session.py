"""
HTTP session creation for webfind.

Provides sessions with:
* TCP keep-alive probes on every pooled connection
* Connection-pool sizing (global and per host)
* Automatic retry on 5xx responses (transport failures are left to the
  crawler's backoff supervisor)
"""

import socket
from dataclasses import dataclass

import requests
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection
from urllib3.util.retry import Retry

from webfind.config import (
    DEFAULT_KEEP_ALIVE,
    DEFAULT_MAX_IDLE_CONNS,
    DEFAULT_MAX_IDLE_CONNS_PER_HOST,
    DEFAULT_TIMEOUT,
    DEFAULT_TLS_HANDSHAKE_TIMEOUT,
    MAX_RETRIES,
    USER_AGENT,
)


@dataclass(frozen=True)
class TransportOptions:
    """Transport tuning.  Durations are in milliseconds."""

    connection_timeout: int = DEFAULT_TIMEOUT
    keep_alive: int = DEFAULT_KEEP_ALIVE
    tls_handshake_timeout: int = DEFAULT_TLS_HANDSHAKE_TIMEOUT
    max_idle_conns: int = DEFAULT_MAX_IDLE_CONNS
    max_idle_conns_per_host: int = DEFAULT_MAX_IDLE_CONNS_PER_HOST

    def request_timeout(self) -> tuple[float, float]:
        """``(connect, read)`` timeout tuple for ``requests``.

        urllib3 performs the TLS handshake inside the connect phase, so the
        connect budget covers both the dial and the handshake.
        """
        connect = (self.connection_timeout + self.tls_handshake_timeout) / 1000
        read = self.connection_timeout / 1000
        return connect, read

    def socket_options(self) -> list[tuple[int, int, int]]:
        options = list(HTTPConnection.default_socket_options)
        if self.keep_alive <= 0:
            return options
        interval = max(1, self.keep_alive // 1000)
        options.append((socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1))
        if hasattr(socket, "TCP_KEEPIDLE"):
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, interval))
        if hasattr(socket, "TCP_KEEPINTVL"):
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, interval))
        return options


class _TransportAdapter(HTTPAdapter):
    """``HTTPAdapter`` that applies custom socket options to its pools."""

    def __init__(self, socket_options, **kwargs) -> None:
        # init_poolmanager() runs inside HTTPAdapter.__init__
        self._socket_options = socket_options
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["socket_options"] = self._socket_options
        return super().init_poolmanager(*args, **kwargs)


def build_session(
    transport: TransportOptions | None = None,
    verify_ssl: bool = True,
) -> requests.Session:
    """Return a ``requests.Session`` configured from *transport*."""
    transport = transport or TransportOptions()
    session = requests.Session()
    retry = Retry(
        total=MAX_RETRIES,
        connect=0,
        read=0,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        raise_on_status=False,
    )
    adapter = _TransportAdapter(
        transport.socket_options(),
        max_retries=retry,
        pool_connections=transport.max_idle_conns,
        pool_maxsize=transport.max_idle_conns_per_host,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = verify_ssl
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
        "Connection": "keep-alive",
    })
    return session
