from typing import Any, List, Optional

from nixsearch.domain.models import (
    License,
    Maintainer,
    MetaValue,
    Scalar,
    Structured,
)

# "/nix/store/" + 32-character hash + "-"
STORE_PATH_PREFIX = "/nix/store/"
STORE_PATH_PREFIX_LENGTH = 44

LITERAL_EXAMPLE_TYPES = ("literalExample", "literalExpression")


def as_list(value: Any) -> List[Any]:
    """
    Wrap a single value into a list.

    ``None`` becomes an empty list; lists and tuples are returned as lists.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def parse_meta_value(value: Any) -> Optional[MetaValue]:
    """
    Tag a string-or-object upstream value.

    Anything that is neither a string nor an object is not representable and
    yields ``None``.
    """
    if isinstance(value, str):
        return Scalar(value=value)
    if isinstance(value, dict):
        return Structured(attrs=value)
    return None


def parse_meta_values(value: Any) -> List[MetaValue]:
    return [v for v in (parse_meta_value(item) for item in as_list(value)) if v is not None]


def to_license(value: MetaValue) -> License:
    if isinstance(value, Scalar):
        return License(full_name=value.value)
    return License(
        full_name=value.get_str("fullName", "spdxId", "shortName"),
        url=value.get_str("url"),
    )


def to_maintainer(value: MetaValue) -> Maintainer:
    if isinstance(value, Scalar):
        return Maintainer(name=value.value)
    return Maintainer(
        name=value.get_str("name"),
        email=value.get_str("email"),
        github=value.get_str("github"),
    )


def normalize_licenses(value: Any) -> List[License]:
    return [to_license(v) for v in parse_meta_values(value)]


def normalize_maintainers(value: Any) -> List[Maintainer]:
    return [to_maintainer(v) for v in parse_meta_values(value)]


def normalize_platforms(value: Any) -> List[str]:
    """Keep string platforms only, de-duplicated in first-seen order."""
    seen: dict = {}
    for platform in as_list(value):
        if isinstance(platform, str):
            seen.setdefault(platform, None)
    return list(seen)


def strip_store_prefix(position: Optional[str]) -> Optional[str]:
    if position and position.startswith(STORE_PATH_PREFIX):
        return position[STORE_PATH_PREFIX_LENGTH:]
    return position


def first_string(value: Any) -> Optional[str]:
    """Return ``value`` if it is a string, or the first string it contains."""
    for item in as_list(value):
        if isinstance(item, str):
            return item
    return None


def attr_set_of(attr_name: str) -> Optional[str]:
    """
    Name of the package set an attribute lives in, e.g. ``pythonPackages``.

    Only top-level sets ending in ``Packages`` or ``Plugins`` count.
    """
    if "." not in attr_name:
        return None
    attr_set = attr_name.split(".", 1)[0]
    if attr_set.endswith("Packages") or attr_set.endswith("Plugins"):
        return attr_set
    return None


def unwrap_example(example: Any) -> Any:
    """Replace a ``{"_type": "literalExample", "text": ...}`` wrapper by its text."""
    if isinstance(example, dict) and example.get("_type") in LITERAL_EXAMPLE_TYPES:
        return example.get("text")
    return example
