# === NAVMAP v1 ===
# {
#   "module": "InlineImages.html",
#   "purpose": "Locate <img> tags and read, replace and split src/srcset attribute values",
#   "sections": [
#     {"id": "attributematch", "name": "AttributeMatch", "anchor": "class-attributematch", "kind": "class"},
#     {"id": "find-attribute", "name": "find_attribute", "anchor": "function-find-attribute", "kind": "function"},
#     {"id": "replace-attribute", "name": "replace_attribute", "anchor": "function-replace-attribute", "kind": "function"},
#     {"id": "srcsetitem", "name": "SrcsetItem", "anchor": "class-srcsetitem", "kind": "class"},
#     {"id": "parse-srcset", "name": "parse_srcset", "anchor": "function-parse-srcset", "kind": "function"},
#     {"id": "format-srcset", "name": "format_srcset", "anchor": "function-format-srcset", "kind": "function"},
#     {"id": "collect-references", "name": "collect_references", "anchor": "function-collect-references", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Lightweight ``<img>`` scanning for the inliner.

This is deliberately a text-level scanner rather than an HTML parser: only the
value of a ``src`` or ``srcset`` attribute is ever rewritten, and every other
byte of the document, including the rest of each tag, is left exactly as
written. Attribute values are used as they appear in the markup (no entity
decoding).

``srcset`` handling is best effort: each item is a URL (a run of
non-whitespace characters, so commas inside ``data:`` URLs survive) optionally
followed by one descriptor such as ``2x`` or ``480w``. Items carrying more than
one descriptor token are preserved verbatim and never resolved.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence, Tuple

__all__ = (
    "IMG_TAG_PATTERN",
    "AttributeMatch",
    "SrcsetItem",
    "collect_references",
    "find_attribute",
    "format_srcset",
    "iter_img_tags",
    "parse_srcset",
    "replace_attribute",
)

IMG_TAG_PATTERN = re.compile(r"<img\b[^>]*>", re.IGNORECASE)

_ATTRIBUTE_TEMPLATE = r"""(?<![\w-]){name}\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'=<>`]+))"""

_WHITESPACE = " \t\n\r\f"


@dataclass(frozen=True)
class AttributeMatch:
    """Location of one attribute value inside a tag.

    ``start``/``end`` delimit the value itself, excluding any quotes.
    ``quote`` is ``'"'``, ``"'"`` or ``""`` for an unquoted value.
    """

    name: str
    value: str
    start: int
    end: int
    quote: str


def _attribute_pattern(name: str) -> "re.Pattern[str]":
    return re.compile(_ATTRIBUTE_TEMPLATE.format(name=re.escape(name)), re.IGNORECASE)


_SRC_PATTERN = _attribute_pattern("src")
_SRCSET_PATTERN = _attribute_pattern("srcset")
_PATTERNS = {"src": _SRC_PATTERN, "srcset": _SRCSET_PATTERN}


def iter_img_tags(html: str) -> Iterator["re.Match[str]"]:
    """Yield ``<img>`` tag matches in document order."""

    return IMG_TAG_PATTERN.finditer(html)


def find_attribute(tag: str, name: str) -> Optional[AttributeMatch]:
    """Find the first ``name=`` attribute in ``tag``.

    Examples:
        >>> find_attribute('<img data-src="x" src=\\'a.png\\'>', "src").value
        'a.png'
        >>> find_attribute('<img data-src="x">', "src") is None
        True
    """

    pattern = _PATTERNS.get(name.lower()) or _attribute_pattern(name)
    match = pattern.search(tag)
    if match is None:
        return None
    for group, quote in (("dq", '"'), ("sq", "'"), ("bare", "")):
        value = match.group(group)
        if value is not None:
            return AttributeMatch(
                name=name,
                value=value,
                start=match.start(group),
                end=match.end(group),
                quote=quote,
            )
    return None


def replace_attribute(tag: str, match: AttributeMatch, value: str) -> str:
    """Return ``tag`` with the value at ``match`` replaced by ``value``.

    The original quote character is kept; unquoted values are rewritten with
    double quotes.
    """

    if match.quote:
        return tag[: match.start] + value + tag[match.end :]
    return f'{tag[: match.start]}"{value}"{tag[match.end :]}'


@dataclass(frozen=True)
class SrcsetItem:
    """One candidate of a ``srcset`` list.

    Attributes:
        url: URL token of the candidate.
        descriptor: Single descriptor token (``2x``, ``480w``) or ``""``.
        text: The item exactly as written (trimmed).
        resolvable: ``False`` for items kept verbatim (several descriptors).
    """

    url: str
    descriptor: str = ""
    text: str = ""
    resolvable: bool = True

    def with_url(self, url: str) -> "SrcsetItem":
        """Return a copy pointing at ``url`` with the same descriptor."""

        text = f"{url} {self.descriptor}" if self.descriptor else url
        return replace(self, url=url, text=text)

    def render(self) -> str:
        if self.text:
            return self.text
        if self.descriptor:
            return f"{self.url} {self.descriptor}"
        return self.url


def parse_srcset(value: str) -> List[SrcsetItem]:
    """Split a ``srcset`` value into :class:`SrcsetItem` entries.

    Examples:
        >>> [item.url for item in parse_srcset("a.png 1x, b.png 2x")]
        ['a.png', 'b.png']
        >>> parse_srcset("data:image/png;base64,AAA= 2x")[0].descriptor
        '2x'
    """

    items: List[SrcsetItem] = []
    position = 0
    length = len(value)

    while position < length:
        while position < length and (value[position] in _WHITESPACE or value[position] == ","):
            position += 1
        if position >= length:
            break

        item_start = position
        while position < length and value[position] not in _WHITESPACE:
            position += 1
        url = value[item_start:position]

        if url.endswith(","):
            url = url.rstrip(",")
            items.append(SrcsetItem(url=url, text=url))
            continue

        comma = value.find(",", position)
        item_end = length if comma == -1 else comma
        descriptor_text = value[position:item_end].strip()
        text = value[item_start:item_end].strip()
        position = item_end + 1

        tokens = descriptor_text.split()
        if len(tokens) > 1:
            items.append(SrcsetItem(url=url, text=text, resolvable=False))
        else:
            items.append(SrcsetItem(url=url, descriptor=descriptor_text, text=text))

    return items


def format_srcset(items: Sequence[SrcsetItem]) -> str:
    """Join items back into a ``srcset`` value separated by ``", "``."""

    return ", ".join(item.render() for item in items)


def collect_references(html: str) -> List[Tuple[str, str]]:
    """List ``(site, raw)`` pairs in document order.

    ``site`` is ``"src"`` or ``"srcset"``; each resolvable ``srcset`` item
    contributes its own entry. Empty ``src`` values are ignored.
    """

    references: List[Tuple[str, str]] = []
    for tag_match in iter_img_tags(html):
        tag = tag_match.group(0)
        src = find_attribute(tag, "src")
        if src is not None and src.value:
            references.append(("src", src.value))
        srcset = find_attribute(tag, "srcset")
        if srcset is not None:
            references.extend(
                ("srcset", item.url) for item in parse_srcset(srcset.value) if item.resolvable
            )
    return references
