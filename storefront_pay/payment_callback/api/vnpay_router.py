from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from storefront_pay.payment_callback import callback_logger
from storefront_pay.payment_callback.api.params import read_callback_params
from storefront_pay.payment_callback.dependencies import client_ip, get_callback_service, get_vnpay_gateway
from storefront_pay.payment_callback.schemas import CreatePaymentUrlRequest, CreatePaymentUrlResponse
from storefront_pay.payment_callback.services.callback_service import CallbackService
from storefront_pay.payment_gateway.gateways import VnpayGateway
from storefront_pay.utils.status import RspCode

router = APIRouter(prefix="/vnpay", tags=["VNPay"])


@router.post("/create_payment_url")
async def create_payment_url(
    data: CreatePaymentUrlRequest,
    request: Request,
    gateway: Optional[VnpayGateway] = Depends(get_vnpay_gateway),
):
    """Build a signed VNPay checkout URL for an existing order."""
    if gateway is None:
        return JSONResponse(
            status_code=503,
            content=CreatePaymentUrlResponse(success=False, message="VNPay config missing").to_dict()
        )

    try:
        payment_url = gateway.build_payment_url(
            order_id=data.order_id,
            amount=data.amount,
            client_ip=client_ip(request),
            bank_code=data.bank_code,
            language=data.language,
        )
    except Exception as e:
        callback_logger.error(f"Failed to create VNPay URL for order {data.order_id}: {e}")
        return JSONResponse(
            status_code=500,
            content=CreatePaymentUrlResponse(success=False, message="Failed to create payment URL").to_dict()
        )

    callback_logger.info(f"Created VNPay payment URL for order_id={data.order_id}")
    return JSONResponse(content=CreatePaymentUrlResponse(success=True, paymentUrl=payment_url).to_dict())


@router.get("/return")
async def vnpay_return(
    request: Request,
    background_tasks: BackgroundTasks,
    gateway: Optional[VnpayGateway] = Depends(get_vnpay_gateway),
    service: CallbackService = Depends(get_callback_service),
):
    """
    Handle the shopper's browser coming back from VNPay.

    Verifies and reconciles like the IPN, then redirects to the storefront's
    success or failure page.
    """
    params = dict(request.query_params)
    callback_logger.info(f"Received VNPay return redirect for order_id={params.get('vnp_TxnRef')}")

    if gateway is None:
        return RedirectResponse(service.settings.frontend_failure_url, status_code=302)

    result = await service.process(gateway, params, background_tasks)
    return RedirectResponse(service.redirect_url(result), status_code=302)


@router.api_route("/ipn", methods=["GET", "POST"])
async def vnpay_ipn(
    request: Request,
    background_tasks: BackgroundTasks,
    gateway: Optional[VnpayGateway] = Depends(get_vnpay_gateway),
    service: CallbackService = Depends(get_callback_service),
):
    """
    Handle VNPay's server-to-server payment notification.

    Always answers 200 with {RspCode, Message}; VNPay keeps retrying on
    anything else.
    """
    if gateway is None:
        return JSONResponse(content={"RspCode": RspCode.UNKNOWN_ERROR.value, "Message": "Gateway disabled"})

    try:
        params = await read_callback_params(request)
    except ValueError as e:
        callback_logger.warning(f"Unreadable VNPay IPN body: {e}")
        return JSONResponse(content=gateway.ipn_response(RspCode.CHECKSUM_FAILED, "Checksum failed", {}))

    result = await service.process(gateway, params, background_tasks)
    return JSONResponse(content=gateway.ipn_response(result.code, result.message, params))
