"""
Field encoding for the payment gateway.

Request fields are a recursive map: a value is either a scalar or a nested
map/list (e.g. address sub-fields). Both the signer and the hosted form
renderer flatten that structure into ``name[sub]`` leaf pairs through
flatten_field(), so what gets signed is exactly what gets posted.
"""

from __future__ import annotations

import html
import re
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl

Scalar = Union[str, int, float, Decimal, bool]
FieldValue = Union[Scalar, Mapping[str, Any], Sequence[Any], None]
FieldMap = Dict[str, Any]

CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f]")
BRACKET_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
BRACKET_PART_RE = re.compile(r"\[([^\[\]]*)\]")
INDEX_KEY_RE = re.compile(r"[0-9]+")


# ══════════════════════════════════════════════════════════════════════
# Flattening
# ══════════════════════════════════════════════════════════════════════


def scalar_to_text(value: Scalar) -> str:
    """Convert a leaf value to the text sent over the wire."""
    # bool first, it is an int subclass
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    raise TypeError(
        f"Unsupported gateway field value of type {type(value).__name__!r}"
    )


def flatten_field(name: str, value: FieldValue) -> List[Tuple[str, str]]:
    """
    Expand a field into (name, text) leaf pairs.

    Nested maps become ``name[key]`` and lists ``name[index]``, recursively.
    None values produce no pairs.
    """
    if value is None:
        return []
    if isinstance(value, Mapping):
        pairs: List[Tuple[str, str]] = []
        for key, sub in value.items():
            pairs.extend(flatten_field(f"{name}[{_key_text(key)}]", sub))
        return pairs
    if isinstance(value, (list, tuple)):
        pairs = []
        for index, sub in enumerate(value):
            pairs.extend(flatten_field(f"{name}[{index}]", sub))
        return pairs
    return [(name, scalar_to_text(value))]


def flatten_fields(fields: Mapping[str, FieldValue]) -> List[Tuple[str, str]]:
    """
    Flatten a whole field map, keeping its iteration order.

    Raises ValueError when two fields flatten to the same leaf name, e.g.
    ``{"addr[city]": ..., "addr": {"city": ...}}``.
    """
    pairs: List[Tuple[str, str]] = []
    seen = set()
    for name, value in fields.items():
        for leaf_name, leaf_value in flatten_field(_key_text(name), value):
            if leaf_name in seen:
                raise ValueError(f"Gateway field {leaf_name!r} is given more than once")
            seen.add(leaf_name)
            pairs.append((leaf_name, leaf_value))
    return pairs


def _key_text(key: Any) -> str:
    if isinstance(key, bool) or not isinstance(key, (str, int)):
        raise TypeError(f"Unsupported gateway field name {key!r}")
    return str(key)


# ══════════════════════════════════════════════════════════════════════
# Hosted form rendering
# ══════════════════════════════════════════════════════════════════════


def escape_value(text: str) -> str:
    """
    Escape text for use inside a double-quoted HTML attribute.

    Markup characters become entities and raw control characters
    (0x00-0x1F) become numeric references so they survive the form post.
    """
    escaped = html.escape(text, quote=True)
    return CONTROL_CHAR_RE.sub(lambda m: f"&#{ord(m.group(0))};", escaped)


def field_to_html(name: str, value: FieldValue) -> str:
    """Return one hidden <input> per leaf of the field."""
    return "".join(
        f'<input type="hidden" name="{escape_value(leaf_name)}" '
        f'value="{escape_value(leaf_value)}" />'
        for leaf_name, leaf_value in flatten_field(name, value)
    )


def silent_post(
    url: str = "?",
    fields: Optional[Mapping[str, FieldValue]] = None,
    target: str = "_self",
) -> str:
    """
    Render HTML that silently POSTs fields to url in the target window.

    The form submits itself immediately; a Continue button is shown to
    browsers without JavaScript.
    """
    inputs = ""
    if fields:
        inputs = "\n    ".join(
            field_to_html(name, value) for name, value in fields.items()
        )

    return (
        f'<form id="silentPost" action="{escape_value(url)}" method="post" '
        f'target="{escape_value(target)}">\n'
        f"    {inputs}\n"
        '    <noscript><input type="submit" value="Continue"></noscript>\n'
        "</form>\n"
        "<script>\n"
        "    window.setTimeout(function () { document.forms.silentPost.submit(); }, 0);\n"
        "</script>"
    )


# ══════════════════════════════════════════════════════════════════════
# Form body decoding
# ══════════════════════════════════════════════════════════════════════


def decode_form(body: Union[str, bytes]) -> FieldMap:
    """
    Parse a form-encoded body into a nested field map.

    Bracketed keys are rebuilt into nested maps (``a[b]=1`` gives
    ``{"a": {"b": "1"}}``); an empty ``[]`` appends the next index.
    Raises ValueError when the body is not a valid form encoding or when
    keys collide.
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    body = body.strip()
    if not body:
        return {}

    result: FieldMap = {}
    for key, value in parse_qsl(body, keep_blank_values=True, strict_parsing=True):
        match = BRACKET_KEY_RE.match(key)
        if not match:
            _assign(result, [key], value)
            continue
        path = [match.group(1), *BRACKET_PART_RE.findall(match.group(2))]
        _assign(result, path, value)
    return result


def _assign(root: FieldMap, path: List[str], value: str) -> None:
    node = root
    for part in path[:-1]:
        if part == "":
            part = _next_index(node)
        child = node.setdefault(part, {})
        if not isinstance(child, dict):
            raise ValueError(f"Form field {part!r} is both a value and a group")
        node = child

    leaf = path[-1]
    if leaf == "":
        leaf = _next_index(node)
    if isinstance(node.get(leaf), dict):
        raise ValueError(f"Form field {leaf!r} is both a value and a group")
    node[leaf] = value


def _next_index(node: FieldMap) -> str:
    # one past the highest numeric key, so ``[]`` never lands on a used index
    indexes = [int(key) for key in node if INDEX_KEY_RE.fullmatch(key)]
    return str(max(indexes) + 1) if indexes else "0"
