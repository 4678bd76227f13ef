"""Deterministic serialization of callback parameters for signing.

The gateway signs ``key=value&key=value`` where keys are sorted by their
URL-encoded form and every value is percent-encoded the way JavaScript's
``encodeURIComponent`` does it, except that spaces become ``+``.
"""

from typing import Mapping
from urllib.parse import quote

from storefront_pay.payment_gateway.errors import MalformedCallback

# Characters encodeURIComponent leaves untouched besides alphanumerics
_UNRESERVED = "-_.!~*'()"


def encode_component(value: str) -> str:
    """Percent-encode a single key or value, space as ``+``."""
    return quote(str(value), safe=_UNRESERVED).replace("%20", "+")


def canonicalize(params: Mapping[str, str]) -> str:
    """
    Build the canonical sign string for a flat parameter set.

    Args:
        params: Callback parameters with the signature fields already removed.
            Values must be URL-decoded exactly once by the caller.

    Returns:
        The ``&``-joined ``key=value`` string. Empty values are kept.

    Raises:
        MalformedCallback: If any value is None
    """
    encoded = []
    for key, value in params.items():
        if value is None:
            raise MalformedCallback(f"Parameter '{key}' has no value")
        encoded.append((encode_component(key), encode_component(value)))

    encoded.sort(key=lambda pair: pair[0])
    return "&".join(f"{key}={value}" for key, value in encoded)
