"""
Index names and field mappings for the per-channel search indices.
"""
from __future__ import annotations

from typing import Any, Dict

PACKAGES_UNIT = "packages"
OPTIONS_UNIT = "options"

INDEX_SETTINGS: Dict[str, Any] = {
    "number_of_shards": 1,
}

PACKAGES_MAPPING: Dict[str, Any] = {
    "properties": {
        "attr_name": {"type": "keyword"},
        "attr_set": {"type": "keyword"},
        "name": {"type": "keyword"},
        "version": {"type": "text"},
        "description": {"type": "text"},
        "longDescription": {"type": "text"},
        "license": {
            "type": "nested",
            "properties": {
                "fullName": {"type": "text"},
                "url": {"type": "text"},
            },
        },
        "maintainers": {
            "type": "nested",
            "properties": {
                "name": {"type": "text"},
                "email": {"type": "text"},
                "github": {"type": "text"},
            },
        },
        "platforms": {"type": "keyword"},
        "position": {"type": "text"},
        "homepage": {"type": "keyword"},
    },
}

OPTIONS_MAPPING: Dict[str, Any] = {
    "properties": {
        "option_name": {"type": "keyword"},
        "description": {"type": "text"},
        "type": {"type": "keyword"},
        "default": {"type": "text"},
        "example": {"type": "text"},
        "source": {"type": "keyword"},
    },
}

MAPPINGS: Dict[str, Dict[str, Any]] = {
    PACKAGES_UNIT: PACKAGES_MAPPING,
    OPTIONS_UNIT: OPTIONS_MAPPING,
}


def index_name(channel: str, unit: str) -> str:
    """``nixos-21.05`` + ``packages`` -> ``nixos-21.05-packages``."""
    if unit not in MAPPINGS:
        raise ValueError(f"Unknown document class: {unit}")
    return f"{channel}-{unit}"
