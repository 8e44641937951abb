"""
Release metadata lookup.

Queries the release endpoint once per call and resolves the asset published
for this platform into a :class:`ReleaseDescriptor`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import orjson

from .exceptions import AssetNotFoundError, ReleaseFetchError
from .http_utils import SessionFactory, build_timeout, default_session_factory, ensure_http_url
from .network_errors import NETWORK_ERROR_TYPES, describe_network_error, is_network_unreachable_error
from .platform_resolver import PlatformResolver
from .version_registry import clean_version

logger = logging.getLogger(__name__)

HTTP_OK = 200
DIGEST_PREFIX = "sha256:"
RELEASE_HEADERS = {"Accept": "application/vnd.github+json"}


@dataclass(frozen=True)
class ReleaseDescriptor:
    """The asset to install for the latest release."""

    version_tag: str
    version_clean: str
    expected_size_bytes: int
    expected_hash_hex: str
    asset_name: str


def _strip_digest(raw: Any) -> str:
    if not isinstance(raw, str):
        return ""
    return raw[len(DIGEST_PREFIX) :] if raw.startswith(DIGEST_PREFIX) else raw


def parse_release_payload(payload: Any, resolver: PlatformResolver) -> ReleaseDescriptor:
    """Select this platform's asset from a release JSON document."""
    if not isinstance(payload, Mapping):
        raise ReleaseFetchError("Failed to parse release data: expected a JSON object")

    tag = payload.get("tag_name")
    if not isinstance(tag, str) or not tag.strip():
        raise ReleaseFetchError("Failed to parse release data: missing tag_name")

    asset_name = resolver.asset_name(tag)
    assets = payload.get("assets")
    if not isinstance(assets, list):
        assets = []

    for asset in assets:
        if not isinstance(asset, Mapping) or asset.get("name") != asset_name:
            continue
        size = asset.get("size")
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise ReleaseFetchError(f"Failed to parse release data: invalid size for {asset_name}")
        return ReleaseDescriptor(
            version_tag=tag,
            version_clean=clean_version(tag),
            expected_size_bytes=size,
            expected_hash_hex=_strip_digest(asset.get("digest")),
            asset_name=asset_name,
        )

    raise AssetNotFoundError(f"Asset {asset_name} not found in release {tag}", asset_name=asset_name, tag=tag)


class ReleaseFetcher:
    """Fetches the latest release descriptor. Performs exactly one request per call."""

    def __init__(
        self,
        release_api_url: str,
        resolver: PlatformResolver,
        *,
        request_timeout_seconds: float = 30.0,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.release_api_url = ensure_http_url(release_api_url)
        self.resolver = resolver
        self.request_timeout_seconds = request_timeout_seconds
        self._session_factory = session_factory or default_session_factory

    async def _get_json(self) -> Any:
        timeout = build_timeout(self.request_timeout_seconds)
        async with self._session_factory(timeout=timeout) as session:
            async with session.get(self.release_api_url, headers=RELEASE_HEADERS) as response:
                if response.status != HTTP_OK:
                    raise ReleaseFetchError(
                        f"Failed to fetch latest version: HTTP {response.status}",
                        status=response.status,
                    )
                body = await response.read()
        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as exc:
            raise ReleaseFetchError(f"Failed to parse release data: {exc}") from exc

    async def fetch_latest_release(self) -> ReleaseDescriptor:
        try:
            payload = await self._get_json()
        except NETWORK_ERROR_TYPES as exc:
            if is_network_unreachable_error(exc):
                logger.warning("Release endpoint %s is unreachable", self.release_api_url)
            raise ReleaseFetchError(f"Failed to fetch latest version: {describe_network_error(exc)}") from exc

        descriptor = parse_release_payload(payload, self.resolver)
        logger.info(
            "Latest available version: %s (size: %d bytes)",
            descriptor.version_clean,
            descriptor.expected_size_bytes,
        )
        if descriptor.expected_hash_hex:
            logger.info("Expected SHA256: %s", descriptor.expected_hash_hex)
        return descriptor


__all__ = ["ReleaseDescriptor", "ReleaseFetcher", "parse_release_payload"]
