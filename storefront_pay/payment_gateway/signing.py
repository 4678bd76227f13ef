"""Per-gateway signing strategies.

VNPay signs every parameter with a sorted-key scheme (HMAC-SHA512). MoMo
signs a fixed-order template of named fields (HMAC-SHA256) and mixes in the
partner's access key, which is never part of the callback payload itself.
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from typing import Mapping, Optional, Sequence

from storefront_pay.payment_gateway.canonicalizer import canonicalize
from storefront_pay.payment_gateway.errors import MalformedCallback


def compute_hmac(secret: str, message: str, digestmod) -> str:
    """Lowercase hex HMAC of the UTF-8 bytes of ``message``."""
    return hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        digestmod,
    ).hexdigest()


class SigningStrategy(ABC):
    """How one gateway turns callback parameters into the signed string."""

    digestmod = hashlib.sha512
    excluded_fields: frozenset = frozenset()

    def strip(self, params: Mapping[str, str]) -> dict[str, str]:
        """Drop the signature fields from a raw parameter set."""
        return {k: v for k, v in params.items() if k not in self.excluded_fields}

    @abstractmethod
    def canonicalize(self, params: Mapping[str, str]) -> str:
        raise NotImplementedError


class SortedKeySigningStrategy(SigningStrategy):
    """VNPay: all parameters, sorted by encoded key, HMAC-SHA512."""

    digestmod = hashlib.sha512
    excluded_fields = frozenset({"vnp_SecureHash", "vnp_SecureHashType"})

    def canonicalize(self, params: Mapping[str, str]) -> str:
        return canonicalize(self.strip(params))


class TemplateSigningStrategy(SigningStrategy):
    """MoMo: ``field=value`` pairs in a fixed order, values not encoded."""

    digestmod = hashlib.sha256
    excluded_fields = frozenset({"signature"})

    def __init__(self, fields: Sequence[str], access_key: Optional[str] = None):
        self.fields = tuple(fields)
        self.access_key = access_key

    def canonicalize(self, params: Mapping[str, str]) -> str:
        parts = []
        for name in self.fields:
            if name == "accessKey" and self.access_key is not None:
                value = self.access_key
            else:
                value = params.get(name)
            if value is None:
                raise MalformedCallback(f"Missing field '{name}' for template signature")
            parts.append(f"{name}={value}")
        return "&".join(parts)


MOMO_CREATE_FIELDS = (
    "accessKey", "amount", "extraData", "ipnUrl", "orderId", "orderInfo",
    "partnerCode", "redirectUrl", "requestId", "requestType",
)

MOMO_CALLBACK_FIELDS = (
    "accessKey", "amount", "extraData", "message", "orderId", "orderInfo",
    "orderType", "partnerCode", "payType", "requestId", "responseTime",
    "resultCode", "transId",
)

VNPAY_SIGNING = SortedKeySigningStrategy()
