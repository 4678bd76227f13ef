import json
from urllib.parse import parse_qsl

from starlette.requests import Request


async def read_callback_params(request: Request) -> dict[str, str]:
    """
    Collect callback parameters from a query string, JSON or form body.

    Values are decoded exactly once here; nothing downstream decodes again.

    Raises:
        ValueError: If the body is neither a JSON object nor urlencoded
    """
    params = dict(request.query_params)
    body = await request.body()
    if not body:
        return params

    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        payload = json.loads(body)
        if not isinstance(payload, dict):
            raise ValueError("Callback body must be a JSON object")
        params.update(payload)
    else:
        params.update(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
    return params
