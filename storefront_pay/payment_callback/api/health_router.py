from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from storefront_pay.utils.response_format import ResponseFormat
from storefront_pay.utils.status import Status

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health(request: Request):
    """Report which backing services answer. None means not used by this instance."""
    state = request.app.state
    db = getattr(state, "db", None)
    redis_conn = getattr(state, "redis", None)

    checks = {
        "postgres": await db.health_check() if db is not None else None,
        "redis": await redis_conn.health_check() if redis_conn is not None else None,
        "gateways": sorted(state.gateways.keys()),
    }
    healthy = checks["postgres"] is not False and checks["redis"] is not False
    return JSONResponse(
        status_code=200 if healthy else 503,
        content=ResponseFormat(
            status=Status.SUCCESS if healthy else Status.FAILURE,
            message="SUCCESS" if healthy else "Degraded",
            data=checks
        ).to_dict()
    )
