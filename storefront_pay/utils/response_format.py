from typing import Any

from pydantic import BaseModel

from storefront_pay.utils.status import Status


class ResponseFormat(BaseModel):
    """``{status, message, data}`` envelope of the service's own endpoints (not gateway replies)."""

    status: Status = Status.SUCCESS
    message: str = "SUCCESS"
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
