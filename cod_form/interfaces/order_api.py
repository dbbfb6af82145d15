import json
import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from cod_form.application.intake_validator import RequestMeta
from cod_form.domain.exceptions import FormDisabled, MerchantNotFound, QuotaExceeded, ValidationError
from cod_form.interfaces.cors import CORS_HEADERS

router = APIRouter()
logger = logging.getLogger(__name__)

# Validation reasons -> what the shopper sees in the widget
VALIDATION_MESSAGES = {
    "shop required": "Shop is required",
    "missing customer fields": "Missing required customer fields",
    "missing product fields": "Missing required product fields",
    "invalid quantity": "Quantity must be a positive whole number",
    "order total too large": "Order total is too large",
    "invalid request body": "Invalid request body",
}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code, headers=CORS_HEADERS)


def _request_meta(request: Request) -> RequestMeta:
    forwarded = request.headers.get("x-forwarded-for", "")
    ip_address = forwarded.split(",")[0].strip() if forwarded else ""
    if not ip_address and request.client:
        ip_address = request.client.host
    return RequestMeta(ip_address=ip_address, user_agent=request.headers.get("user-agent", ""))


@router.options("/api/create-order")
@router.get("/api/create-order")
def create_order_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post("/api/create-order")
async def create_order(request: Request):
    """
    Storefront widget submission.
    Retrieves the intake service from app.state (Dependency Injection).
    """
    try:
        raw = await request.body()
        try:
            body = json.loads(raw or b"null")
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("invalid request body")

        intake = request.app.state.intake_service
        # Blocking DB and Shopify calls, keep them off the event loop
        result = await run_in_threadpool(intake.submit, body, _request_meta(request))

    except ValidationError as e:
        logger.info(f"🚫 Rejected submission: {e.message}")
        return _error(VALIDATION_MESSAGES.get(e.message, e.message), 400)
    except (FormDisabled, QuotaExceeded, MerchantNotFound) as e:
        logger.info(f"🚫 Rejected submission: {e.message}")
        return _error(e.message, 400)
    except Exception as e:
        logger.error(f"❌ Order creation error: {e}", exc_info=True)
        return _error("Failed to create order", 500)

    order, sync = result.order, result.sync
    if sync.synced:
        payload = {
            "success": True,
            "orderId": order.id,
            "shopifyOrderId": sync.shopify_order_id,
            "orderNumber": sync.order_number,
        }
    else:
        payload = {
            "success": True,
            "orderId": order.id,
            "message": sync.message,
        }
    return JSONResponse(payload, status_code=200, headers=CORS_HEADERS)
