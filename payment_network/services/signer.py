"""
Canonical request signing for the payment gateway.

The signature is the SHA-512 hex digest of the form-encoded field map
(top-level keys in ascending order, line endings normalised) followed by
the merchant secret. Partial signatures cover a named subset of the fields
and carry the names after a ``|``: ``<hash>|name1,name2``.
"""

from __future__ import annotations

import hashlib
import hmac
import re
from typing import Any, Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import quote_plus

from payment_network.services.encoder import FieldMap, flatten_fields

PartialFields = Union[bool, str, Iterable[str], None]

# CRLF, LFCR and lone CR all count as a single LF
LINE_ENDING_RE = re.compile(r"%0D%0A|%0A%0D|%0D", re.IGNORECASE)


def form_quote(text: str) -> str:
    """Form-encode text: spaces as '+', everything but [A-Za-z0-9_.-] escaped."""
    return quote_plus(text, safe="").replace("~", "%7E")


def build_query(fields: Mapping[str, Any]) -> str:
    """Serialise a field map as a form-encoded query string, in map order."""
    return "&".join(
        f"{form_quote(name)}={form_quote(value)}"
        for name, value in flatten_fields(fields)
    )


def canonical_query(fields: Mapping[str, Any]) -> str:
    """Return the normalised query string that is hashed for a signature."""
    ordered = {name: fields[name] for name in sorted(fields)}
    return LINE_ENDING_RE.sub("%0A", build_query(ordered))


def _restrict(
    fields: Mapping[str, Any], partial: PartialFields
) -> Tuple[FieldMap, Optional[str]]:
    data = dict(fields)
    if not partial:
        return data, None

    if partial is not True:
        if isinstance(partial, str):
            partial = partial.split(",")
        names = set(partial)
        data = {name: value for name, value in data.items() if name in names}

    return data, ",".join(data.keys())


def _digest(fields: Mapping[str, Any], secret: str) -> str:
    if not isinstance(secret, str):
        raise TypeError("Signing secret must be a string")
    payload = canonical_query(fields) + secret
    return hashlib.sha512(payload.encode("utf-8")).hexdigest()


def sign(fields: Mapping[str, Any], secret: str, partial: PartialFields = None) -> str:
    """
    Sign a field map.

    partial selects which fields are signed:
      + None / False - all fields, plain signature
      + True         - all fields, marked as partial with every field name
      + str          - comma separated list of field names to sign
      + iterable     - field names to sign

    A partial signature is returned as ``<hash>|<signed names>`` so the
    receiving side knows which subset to check.
    """
    data, signed_names = _restrict(fields, partial)
    digest = _digest(data, secret)
    if signed_names is not None:
        return f"{digest}|{signed_names}"
    return digest


def verify_signature(fields: Mapping[str, Any], signature: str, secret: str) -> bool:
    """
    Check a signature (plain or ``hash|names``) against fields.

    fields must not include the signature itself.
    """
    expected, _, signed_names = signature.partition("|")
    data, _ = _restrict(fields, signed_names or None)
    actual = _digest(data, secret)
    return hmac.compare_digest(actual.encode("utf-8"), expected.encode("utf-8"))
