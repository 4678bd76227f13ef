"""Gateway signature verification and order reconciliation."""

from storefront_pay.payment_gateway.canonicalizer import canonicalize
from storefront_pay.payment_gateway.signing import (
    SigningStrategy,
    SortedKeySigningStrategy,
    TemplateSigningStrategy,
)
from storefront_pay.payment_gateway.verifier import GatewayVerifier, SignedRequest, sign, verify
from storefront_pay.payment_gateway.reconciler import (
    OrderReconciler,
    ReconcileOutcome,
    ReconcileResult,
)

__all__ = [
    "canonicalize",
    "SigningStrategy",
    "SortedKeySigningStrategy",
    "TemplateSigningStrategy",
    "GatewayVerifier",
    "SignedRequest",
    "sign",
    "verify",
    "OrderReconciler",
    "ReconcileOutcome",
    "ReconcileResult",
]
