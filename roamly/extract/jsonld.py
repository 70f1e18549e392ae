"""JSON-LD (schema.org) readers.

Each ``<script type="application/ld+json">`` block is decoded on its own; a
block that fails to decode is skipped without affecting the others.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, Optional

from roamly.config import get_logger

logger = get_logger(__name__)

_LD_BLOCK = re.compile(
    r"<script[^>]*type\s*=\s*[\"']application/ld\+json[\"'][^>]*>(.*?)</script>",
    re.IGNORECASE | re.DOTALL,
)
_MAX_DEPTH = 8


def _decode(raw: str) -> Any:
    text = raw.strip()
    text = re.sub(r"^\s*<!\[CDATA\[|\]\]>\s*$", "", text).strip().rstrip(";")
    return json.loads(text, strict=False)


def _walk(node: Any, depth: int = 0) -> Iterator[Dict[str, Any]]:
    if depth > _MAX_DEPTH:
        return
    if isinstance(node, list):
        for item in node:
            yield from _walk(item, depth + 1)
    elif isinstance(node, dict):
        yield node
        for value in node.values():
            if isinstance(value, (dict, list)):
                yield from _walk(value, depth + 1)


def iter_nodes(html: str) -> Iterator[Dict[str, Any]]:
    """Yield every JSON object found in the page's JSON-LD blocks, depth first."""
    for idx, block in enumerate(_LD_BLOCK.findall(html or "")):
        try:
            data = _decode(block)
        except (ValueError, RecursionError):
            logger.debug("Skipping malformed JSON-LD block #%d", idx)
            continue
        yield from _walk(data)


def to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = re.search(r"\d+(?:[.,]\d+)?", value)
        if match:
            return float(match.group(0).replace(",", "."))
    return None


def to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = re.search(r"\d[\d,]*", value)
        if match:
            return int(match.group(0).replace(",", ""))
    return None


def _is_type(node: Dict[str, Any], name: str) -> bool:
    kind = node.get("@type")
    if isinstance(kind, list):
        return any(isinstance(k, str) and k.lower() == name.lower() for k in kind)
    return isinstance(kind, str) and kind.lower() == name.lower()


def _aggregate_ratings(html: str) -> Iterator[Dict[str, Any]]:
    for node in iter_nodes(html):
        agg = node.get("aggregateRating")
        if isinstance(agg, dict):
            yield agg
        elif _is_type(node, "AggregateRating"):
            yield node


def rating(html: str) -> Optional[float]:
    for agg in _aggregate_ratings(html):
        value = to_float(agg.get("ratingValue"))
        if value is None:
            continue
        best = to_float(agg.get("bestRating"))
        if best and best > 0 and best != 5:
            value = value / best * 5
        value = round(value, 1)
        if 1.0 <= value <= 5.0:
            return value
    return None


def review_count(html: str) -> Optional[int]:
    for agg in _aggregate_ratings(html):
        count = to_int(agg.get("reviewCount"))
        if count is None:
            count = to_int(agg.get("ratingCount"))
        if count is not None and count >= 0:
            return count
    return None


def price_range(html: str) -> Optional[str]:
    for node in iter_nodes(html):
        value = node.get("priceRange")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def first_image(html: str) -> Optional[str]:
    for node in iter_nodes(html):
        image = node.get("image")
        if isinstance(image, list) and image:
            image = image[0]
        if isinstance(image, dict):
            image = image.get("url")
        if isinstance(image, str) and image.strip():
            return image.strip()
    return None
