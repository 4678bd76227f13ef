from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreatePaymentUrlRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId", min_length=1, description="Order ID from the storefront")
    amount: int = Field(..., gt=0, description="Amount in VND")
    bank_code: Optional[str] = Field(default=None, alias="bankCode")
    language: Optional[str] = Field(default=None, description="vn or en")

    @field_validator("order_id", mode="before")
    @classmethod
    def _order_id_as_str(cls, value):
        return str(value) if isinstance(value, int) else value


class MomoCreatePaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId", min_length=1)
    amount: int = Field(..., gt=0)
    order_info: Optional[str] = Field(default=None, alias="orderInfo")

    @field_validator("order_id", mode="before")
    @classmethod
    def _order_id_as_str(cls, value):
        return str(value) if isinstance(value, int) else value


class CreatePaymentUrlResponse(BaseModel):
    success: bool
    paymentUrl: Optional[str] = None
    clientSecret: Optional[str] = None
    paymentIntentId: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class StripePaymentIntentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId", min_length=1)

    @field_validator("order_id", mode="before")
    @classmethod
    def _order_id_as_str(cls, value):
        return str(value) if isinstance(value, int) else value
