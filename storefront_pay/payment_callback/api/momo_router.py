from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from storefront_pay.payment_callback import callback_logger
from storefront_pay.payment_callback.api.params import read_callback_params
from storefront_pay.payment_callback.dependencies import get_callback_service, get_momo_gateway
from storefront_pay.payment_callback.schemas import CreatePaymentUrlResponse, MomoCreatePaymentRequest
from storefront_pay.payment_callback.services.callback_service import CallbackService
from storefront_pay.payment_gateway.errors import GatewayRequestFailed
from storefront_pay.payment_gateway.gateways import MomoGateway
from storefront_pay.utils.status import RspCode

router = APIRouter(prefix="/momo", tags=["MoMo"])


@router.post("/create_payment_url")
async def create_payment_url(
    data: MomoCreatePaymentRequest,
    gateway: Optional[MomoGateway] = Depends(get_momo_gateway),
):
    """Register the order with MoMo and return its pay URL."""
    if gateway is None:
        return JSONResponse(
            status_code=503,
            content=CreatePaymentUrlResponse(success=False, message="MoMo config missing").to_dict()
        )

    try:
        payment_url = await gateway.create_payment(data.order_id, data.amount, data.order_info)
    except GatewayRequestFailed as e:
        return JSONResponse(
            status_code=502,
            content=CreatePaymentUrlResponse(success=False, message=str(e)).to_dict()
        )

    return JSONResponse(content=CreatePaymentUrlResponse(success=True, paymentUrl=payment_url).to_dict())


@router.get("/return")
async def momo_return(
    request: Request,
    background_tasks: BackgroundTasks,
    gateway: Optional[MomoGateway] = Depends(get_momo_gateway),
    service: CallbackService = Depends(get_callback_service),
):
    """Handle the shopper's browser coming back from MoMo."""
    params = dict(request.query_params)
    callback_logger.info(f"Received MoMo return redirect for order_id={params.get('orderId')}")

    if gateway is None:
        return RedirectResponse(service.settings.frontend_failure_url, status_code=302)

    result = await service.process(gateway, params, background_tasks)
    return RedirectResponse(service.redirect_url(result), status_code=302)


@router.post("/ipn")
async def momo_ipn(
    request: Request,
    background_tasks: BackgroundTasks,
    gateway: Optional[MomoGateway] = Depends(get_momo_gateway),
    service: CallbackService = Depends(get_callback_service),
):
    """Handle MoMo's IPN. Answers 200 with MoMo's partner response body."""
    if gateway is None:
        return JSONResponse(content={"resultCode": int(RspCode.UNKNOWN_ERROR.value), "message": "Gateway disabled"})

    try:
        params = await read_callback_params(request)
    except ValueError as e:
        callback_logger.warning(f"Unreadable MoMo IPN body: {e}")
        return JSONResponse(content=gateway.ipn_response(RspCode.CHECKSUM_FAILED, "Checksum failed", {}))

    result = await service.process(gateway, params, background_tasks)
    return JSONResponse(content=gateway.ipn_response(result.code, result.message, params))
