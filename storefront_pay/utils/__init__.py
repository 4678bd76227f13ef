from storefront_pay.utils.status import Status, RspCode
from storefront_pay.utils.response_format import ResponseFormat

__all__ = ["Status", "RspCode", "ResponseFormat"]
