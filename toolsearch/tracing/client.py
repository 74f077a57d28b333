"""
Process-wide Langfuse client for toolsearch.

Built on the Langfuse SDK v3 (OpenTelemetry based). When keys are absent,
the client cannot be constructed, or the startup auth check fails, the
wrapper stays disabled and all tracing calls elsewhere become no-ops;
conversations never fail because of tracing.
"""

import logging
from typing import Optional

from langfuse import Langfuse

logger = logging.getLogger(__name__)


class TracingClient:
    """Owns the Langfuse client and records why tracing is off, if it is."""

    def __init__(
        self,
        public_key: str = "",
        secret_key: str = "",
        host: str = "",
        debug: bool = False,
    ):
        self._client: Optional[Langfuse] = None
        self._error: Optional[str] = None

        if not (public_key and secret_key):
            self._disable("Langfuse credentials not configured", level=logging.DEBUG)
            return

        if host and "://" not in host:
            logger.warning("LANGFUSE_HOST '%s' has no scheme, expected http(s)://host:port", host)

        options = {"public_key": public_key, "secret_key": secret_key, "debug": debug}
        if host:
            options["host"] = host

        try:
            client = Langfuse(**options)
        except Exception as e:
            self._disable(f"Failed to initialize Langfuse client: {e}")
            return

        reason = self._verify(client)
        if reason:
            self._disable(reason)
            return

        self._client = client
        logger.info("Langfuse tracing enabled (host: %s)", host or "default")

    @staticmethod
    def _verify(client: Langfuse) -> Optional[str]:
        """Return a reason string when the server rejects or cannot be reached."""
        try:
            if client.auth_check():
                return None
        except Exception as e:
            return f"Langfuse connectivity check failed: {e}"
        return "Langfuse auth_check() failed"

    def _disable(self, reason: str, level: int = logging.WARNING) -> None:
        self._client = None
        self._error = reason
        logger.log(level, "Tracing disabled: %s", reason)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def error(self) -> Optional[str]:
        """Why tracing is disabled, or None while enabled."""
        return self._error

    @property
    def client(self) -> Optional[Langfuse]:
        return self._client

    def flush(self) -> None:
        if self._client is None:
            return
        try:
            self._client.flush()
        except Exception as e:
            logger.warning("Failed to flush tracing events: %s", e)

    def shutdown(self) -> None:
        if self._client is None:
            return
        try:
            self._client.shutdown()
        except Exception as e:
            logger.warning("Tracing shutdown failed: %s", e)
        else:
            logger.info("Tracing client shut down")


_tracing_client: Optional[TracingClient] = None


def init_tracing_client(
    public_key: str = "",
    secret_key: str = "",
    host: str = "",
    debug: bool = False,
) -> TracingClient:
    """Create the process-wide tracing client, replacing any previous one."""
    global _tracing_client
    _tracing_client = TracingClient(public_key, secret_key, host, debug)
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    return _tracing_client


def shutdown_tracing() -> None:
    """Flush and drop the process-wide tracing client."""
    global _tracing_client
    if _tracing_client is not None:
        _tracing_client.shutdown()
    _tracing_client = None
