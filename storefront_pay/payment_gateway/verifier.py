import hmac
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from storefront_pay.payment_gateway.errors import MalformedCallback
from storefront_pay.payment_gateway.signing import (
    SigningStrategy,
    VNPAY_SIGNING,
    compute_hmac,
)


@dataclass(frozen=True)
class SignedRequest:
    """Callback parameters plus the detached signature the gateway sent."""
    params: Mapping[str, str]
    signature: str

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @classmethod
    def from_params(cls, raw: Mapping[str, str], strategy: SigningStrategy, signature_field: str):
        """Split a raw callback payload into parameters and signature."""
        signature = raw.get(signature_field) or ""
        return cls(params=strategy.strip(raw), signature=str(signature))


def _check_inputs(params: Mapping[str, str], secret: str) -> None:
    if not secret:
        raise MalformedCallback("Signing secret is not configured")
    if not params:
        raise MalformedCallback("Callback parameters are empty")


def sign(params: Mapping[str, str], secret: str, strategy: Optional[SigningStrategy] = None) -> str:
    """
    Compute the gateway signature for a parameter set.

    Args:
        params: Callback or request parameters (signature fields are ignored)
        secret: Gateway hash secret
        strategy: Signing strategy, VNPay's sorted-key scheme by default

    Returns:
        Lowercase hex HMAC digest

    Raises:
        MalformedCallback: If the secret or the parameters are empty
    """
    strategy = strategy or VNPAY_SIGNING
    _check_inputs(params, secret)
    return compute_hmac(secret, strategy.canonicalize(params), strategy.digestmod)


def verify(signed_request: SignedRequest, secret: str, strategy: Optional[SigningStrategy] = None) -> bool:
    """
    Check a callback signature in constant time.

    The signature is compared exactly as received: a lowercase hex digest,
    no case folding, no whitespace trimming. Returns False for any mismatch,
    including an empty signature. Only malformed input (no secret, no
    parameters, missing template fields) raises MalformedCallback.
    """
    expected = sign(signed_request.params, secret, strategy)
    supplied = signed_request.signature or ""
    if not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


class GatewayVerifier:
    """Binds a signing strategy to one gateway's secret."""

    def __init__(self, strategy: SigningStrategy, secret: str, gateway: str = "vnpay"):
        self.strategy = strategy
        self.secret = secret
        self.gateway = gateway

    def sign(self, params: Mapping[str, str]) -> str:
        return sign(params, self.secret, self.strategy)

    def verify(self, signed_request: SignedRequest) -> bool:
        return verify(signed_request, self.secret, self.strategy)
