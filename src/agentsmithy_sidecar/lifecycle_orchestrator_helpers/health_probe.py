"""Post-readiness ``/health`` probe of the running sidecar."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import orjson

from ..http_utils import SessionFactory, build_timeout, default_session_factory
from ..network_errors import NETWORK_ERROR_TYPES, describe_network_error
from .events import ConfigInvalidEvent

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"


def extract_config_errors(payload: Any) -> Optional[ConfigInvalidEvent]:
    """Return an event unless ``payload`` reports a truthy ``config_valid``.

    A missing or null ``config_valid`` counts as invalid. Non-object bodies yield None.
    """
    if not isinstance(payload, dict) or payload.get("config_valid"):
        return None
    raw_errors = payload.get("config_errors")
    errors: List[str] = []
    if isinstance(raw_errors, list):
        errors = [entry for entry in raw_errors if isinstance(entry, str)]
    if errors:
        for error in errors:
            logger.warning("Server configuration error: %s", error)
    else:
        logger.warning("Server configuration is invalid (no details provided)")
    return ConfigInvalidEvent(errors=tuple(errors))


class HealthProbe:
    """One GET against ``<server_url>/health``. Never raises."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 5.0,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self._session_factory = session_factory or default_session_factory

    async def check(self, server_url: str) -> Optional[ConfigInvalidEvent]:
        url = server_url.rstrip("/") + HEALTH_PATH
        try:
            async with self._session_factory(timeout=build_timeout(self.timeout_seconds)) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.warning("Health check returned HTTP %s", response.status)
                        return None
                    body = await response.read()
            payload = orjson.loads(body)
        except NETWORK_ERROR_TYPES as exc:  # policy_guard: allow-silent-handler
            logger.warning("Health check failed: %s", describe_network_error(exc))
            return None
        except orjson.JSONDecodeError as exc:  # policy_guard: allow-silent-handler
            logger.warning("Health check returned invalid JSON: %s", exc)
            return None
        return extract_config_errors(payload)


__all__ = ["HEALTH_PATH", "HealthProbe", "extract_config_errors"]
