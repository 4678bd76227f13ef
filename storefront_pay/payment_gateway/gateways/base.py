from abc import ABC, abstractmethod
from typing import Mapping, Optional

from storefront_pay.payment_gateway.verifier import GatewayVerifier, SignedRequest
from storefront_pay.utils.status import RspCode


class PaymentGateway(ABC):
    """Callback-side view of one gateway: where its fields live and how it wants answers."""

    name: str = ""
    signature_field: str = ""
    verifier: GatewayVerifier

    def parse(self, raw: Mapping[str, str]) -> SignedRequest:
        return SignedRequest.from_params(raw, self.verifier.strategy, self.signature_field)

    def verify(self, signed_request: SignedRequest) -> bool:
        return self.verifier.verify(signed_request)

    @abstractmethod
    def order_id(self, params: Mapping[str, str]) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def response_code(self, params: Mapping[str, str]) -> str:
        """Gateway result normalized so that "00" means paid."""
        raise NotImplementedError

    @abstractmethod
    def ipn_response(self, code: RspCode, message: str, params: Mapping[str, str]) -> dict:
        raise NotImplementedError
