"""
List the public release bucket over the S3 REST API (ListObjectsV2).
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

import httpx

from nixsearch.domain.errors import TransportError
from nixsearch.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_URL = "https://nix-releases.s3.amazonaws.com"


class S3ObjectStore(ObjectStore):
    """Anonymous, read-only listing of a public S3 bucket."""

    def __init__(
        self,
        bucket_url: str = DEFAULT_BUCKET_URL,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.bucket_url = bucket_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True, timeout=timeout)

    async def list_common_prefixes(self, prefix: str, delimiter: str = "/") -> List[str]:
        prefixes: List[str] = []
        continuation_token: Optional[str] = None

        while True:
            params = {"list-type": "2", "prefix": prefix, "delimiter": delimiter}
            if continuation_token:
                params["continuation-token"] = continuation_token

            logger.debug(f"Listing {self.bucket_url} prefix={prefix!r} token={continuation_token!r}")
            try:
                response = await self._client.get(f"{self.bucket_url}/", params=params)
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.error(f"Failed to list {self.bucket_url}/{prefix}: {e}")
                raise TransportError(f"Failed to list object store prefix '{prefix}': {e}") from e

            page, continuation_token = parse_list_response(response.text)
            prefixes.extend(page)
            if not continuation_token:
                break

        logger.debug(f"Found {len(prefixes)} common prefixes under {prefix!r}")
        return prefixes

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def parse_list_response(body: str) -> tuple[List[str], Optional[str]]:
    """
    Parse one ListObjectsV2 result page.

    Returns the common prefixes on the page and the continuation token for
    the next page, or ``None`` when the listing is complete.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise TransportError(f"Object store returned an unparseable listing: {e}") from e

    prefixes = [
        text
        for text in (cp.findtext("{*}Prefix") for cp in root.findall("{*}CommonPrefixes"))
        if text
    ]

    truncated = (root.findtext("{*}IsTruncated") or "").lower() == "true"
    token = root.findtext("{*}NextContinuationToken") if truncated else None
    return prefixes, token or None

