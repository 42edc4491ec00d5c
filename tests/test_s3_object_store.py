"""Tests for listing the release bucket."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from nixsearch.domain.errors import TransportError
from nixsearch.storage.s3_object_store import S3ObjectStore, parse_list_response

PAGE_ONE = """<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>nix-releases</Name>
  <Prefix>nixos/21.05/</Prefix>
  <KeyCount>2</KeyCount>
  <Delimiter>/</Delimiter>
  <IsTruncated>true</IsTruncated>
  <NextContinuationToken>token-2</NextContinuationToken>
  <CommonPrefixes><Prefix>nixos/21.05/nixos-21.05.100.abcdef/</Prefix></CommonPrefixes>
  <CommonPrefixes><Prefix>nixos/21.05/nixos-21.05.105.abc123/</Prefix></CommonPrefixes>
</ListBucketResult>
"""

PAGE_TWO = """<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>nix-releases</Name>
  <Prefix>nixos/21.05/</Prefix>
  <IsTruncated>false</IsTruncated>
  <CommonPrefixes><Prefix>nixos/21.05/nixos-21.05beta.7.fff000/</Prefix></CommonPrefixes>
</ListBucketResult>
"""


def test_parse_list_response_reads_common_prefixes_only() -> None:
    prefixes, token = parse_list_response(PAGE_ONE)

    assert prefixes == [
        "nixos/21.05/nixos-21.05.100.abcdef/",
        "nixos/21.05/nixos-21.05.105.abc123/",
    ]
    assert token == "token-2"


def test_parse_list_response_last_page_has_no_token() -> None:
    prefixes, token = parse_list_response(PAGE_TWO)

    assert prefixes == ["nixos/21.05/nixos-21.05beta.7.fff000/"]
    assert token is None


def test_parse_list_response_rejects_garbage() -> None:
    with pytest.raises(TransportError):
        parse_list_response("<ListBucketResult")


def test_list_common_prefixes_follows_pagination() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(dict(request.url.params))
        if request.url.params.get("continuation-token") == "token-2":
            return httpx.Response(200, text=PAGE_TWO)
        return httpx.Response(200, text=PAGE_ONE)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            store = S3ObjectStore("https://bucket.example", client=client)
            return await store.list_common_prefixes("nixos/21.05/")

    prefixes = asyncio.run(run())

    assert len(prefixes) == 3
    assert requests[0] == {"list-type": "2", "prefix": "nixos/21.05/", "delimiter": "/"}
    assert requests[1]["continuation-token"] == "token-2"


def test_list_common_prefixes_wraps_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="AccessDenied")

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await S3ObjectStore("https://bucket.example", client=client).list_common_prefixes("nixos/21.05/")

    with pytest.raises(TransportError):
        asyncio.run(run())
