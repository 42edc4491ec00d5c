"""
Pydantic models for the channel search importer.

This module defines all data models used throughout the importer, including:
- The resolved evaluation of a channel
- Tagged variants for heterogeneous upstream ``meta`` values
- Search documents for packages and options
- Per-run outcome reporting

All models use Pydantic for validation, serialization, and type safety.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Evaluation Models
# ---------------------------------------------------------------------------


class Evaluation(BaseModel):
    """
    One resolved build instance of a channel.

    Built by the resolver from an object-store listing and consumed right away
    by both extractors. Never cached across runs.
    """

    model_config = ConfigDict(frozen=True)

    revisions_since_start: int = Field(
        ge=0,
        description="Monotonic counter used only for ordering evaluations; not contiguous.",
    )
    git_revision: str = Field(
        description="Source-control revision the evaluation was built from.",
    )
    storage_prefix: str = Field(
        description="Object-store prefix (directory) holding the evaluation's artifacts.",
    )


# ---------------------------------------------------------------------------
# Upstream Meta Variants
# ---------------------------------------------------------------------------


class Scalar(BaseModel):
    """A bare string where upstream allows either a string or an object."""

    kind: Literal["scalar"] = "scalar"
    value: str


class Structured(BaseModel):
    """An attribute set where upstream allows either a string or an object."""

    kind: Literal["structured"] = "structured"
    attrs: Dict[str, Any] = Field(default_factory=dict)

    def get_str(self, *keys: str) -> Optional[str]:
        """Return the first key holding a string value."""
        for key in keys:
            value = self.attrs.get(key)
            if isinstance(value, str):
                return value
        return None


MetaValue = Union[Scalar, Structured]


# ---------------------------------------------------------------------------
# Search Document Models
# ---------------------------------------------------------------------------


class License(BaseModel):
    """A single license entry of a package."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(default=None, alias="fullName")
    url: Optional[str] = None


class Maintainer(BaseModel):
    """A single maintainer entry of a package."""

    name: Optional[str] = None
    email: Optional[str] = None
    github: Optional[str] = None


class PackageDocument(BaseModel):
    """
    Normalized package record, ready to be written to ``<channel>-packages``.

    ``id`` equals ``attr_name`` so rewriting a package overwrites it.
    ``license``, ``maintainers`` and ``platforms`` are always lists.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    attr_name: str
    attr_set: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    long_description: str = Field(default="", alias="longDescription")
    license: List[License] = Field(default_factory=list)
    maintainers: List[Maintainer] = Field(default_factory=list)
    platforms: List[str] = Field(
        default_factory=list,
        description="Platform names, de-duplicated in first-seen order.",
    )
    position: Optional[str] = None
    homepage: Optional[str] = None

    def to_source(self) -> Dict[str, Any]:
        """Serialize to the field names used by the index mapping."""
        return self.model_dump(by_alias=True, exclude={"id"})


class OptionDocument(BaseModel):
    """
    Normalized configuration option, ready to be written to ``<channel>-options``.

    ``default`` and ``example`` are always strings; an absent value renders as
    ``"None"``.
    """

    id: str
    option_name: str
    description: Optional[str] = None
    type: Optional[str] = None
    default: str = "None"
    example: str = "None"
    source: Optional[str] = None

    def to_source(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"id"})


# ---------------------------------------------------------------------------
# Run Outcome Models
# ---------------------------------------------------------------------------


class LoadOutcome(BaseModel):
    """Result of loading one document class into its index."""

    unit: Literal["packages", "options"]
    index: str
    count: int = Field(ge=0)
    successes: int = Field(default=0, ge=0)

    @property
    def failures(self) -> int:
        return self.count - self.successes


class ChannelRunResult(BaseModel):
    """Everything a caller needs to report one channel run."""

    channel: str
    evaluation: Evaluation
    packages: LoadOutcome
    options: LoadOutcome
