import logging

import httpx
import sqlalchemy.exc
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session

from paybridge.core import errors
from paybridge.core.config import Settings, get_settings
from paybridge.db.models import Base
from paybridge.db.session import SessionLocal, engine
from paybridge.middleware.body_size import BodySizeLimitMiddleware
from paybridge.schemas.payments import (
    ApiResponse,
    CreateOrderRequest,
    OrderLookupRequest,
    PaymentLookupRequest,
    UpdateOrderRequest,
)
from paybridge.services.booking import BookingClient
from paybridge.services.gateway import PaymentGateway, get_razorpay_client, receipt_notes
from paybridge.services.webhook import WebhookProcessor

app = FastAPI(
    title="Payment Bridge",
    description="Razorpay order proxy and payment webhook bridge to the booking backend",
    version="1.0.0",
)

settings = get_settings()

app.add_middleware(BodySizeLimitMiddleware, max_size=settings.max_body_size)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)
logging.getLogger("paybridge").setLevel(settings.log_level.upper())


@app.on_event("startup")
async def startup():
    """Create the delivery log table on startup."""
    Base.metadata.create_all(bind=engine)


@app.exception_handler(errors.ApiError)
async def api_error_handler(request: Request, exc: errors.ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": "Invalid request",
            "code": 400,
            "data": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


# ---------- dependencies ----------
def db_session():
    try:
        db: Session = SessionLocal()
        try:
            yield db
        finally:
            db.close()
    except (sqlalchemy.exc.SQLAlchemyError, sqlalchemy.exc.DBAPIError) as e:
        logger.error(f"Database error: {e}")
        raise errors.UpstreamError("Database connection failed") from e


def get_gateway(settings: Settings = Depends(get_settings)) -> PaymentGateway:
    return PaymentGateway(get_razorpay_client(), currency=settings.order_currency)


async def get_booking_client(settings: Settings = Depends(get_settings)):
    async with httpx.AsyncClient(timeout=settings.booking_timeout) as http:
        yield BookingClient(http, settings)


def get_webhook_processor(
    settings: Settings = Depends(get_settings),
    booking: BookingClient = Depends(get_booking_client),
    db: Session = Depends(db_session),
) -> WebhookProcessor:
    return WebhookProcessor(
        booking,
        secret=settings.razorpay_webhook_secret,
        db=db,
        dedupe=settings.webhook_dedupe,
    )


# ---------- misc ----------
@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
def root():
    return "Server is running"


@app.get("/health", include_in_schema=False)
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "settings": {
            "backend_url": settings.backend_url,
            "order_currency": settings.order_currency,
            "webhook_dedupe": settings.webhook_dedupe,
        },
    }


# ---------- orders & payments ----------
@app.post("/createOrder", response_model=ApiResponse, response_model_exclude_none=True)
def create_order(
    data: CreateOrderRequest, gateway: PaymentGateway = Depends(get_gateway)
):
    if not data.model_fields_set:
        raise errors.ValidationError("Invalid request")

    order = gateway.create_order(data.amount, data.meta)
    if not order or order.get("status") != "created":
        raise errors.ValidationError("Error generating order")
    return {
        "message": "Order generated successfully",
        "code": 200,
        "data": {"orderId": order["id"]},
    }


@app.post(
    "/getOrderDetails", response_model=ApiResponse, response_model_exclude_none=True
)
def order_details(
    data: OrderLookupRequest, gateway: PaymentGateway = Depends(get_gateway)
):
    if not data.orderId:
        raise errors.ValidationError("Order ID is required")

    order = gateway.fetch_order(data.orderId)
    if not order:
        raise errors.ValidationError("Failed to fetch order details")
    return {"message": "Order details fetched successfully", "code": 200, "data": order}


@app.post("/checkPayment", response_model=ApiResponse, response_model_exclude_none=True)
def check_payment(
    data: PaymentLookupRequest, gateway: PaymentGateway = Depends(get_gateway)
):
    if not data.paymentId:
        raise errors.ValidationError("Payment ID is required")

    payment = gateway.fetch_payment(data.paymentId)
    if not payment:
        raise errors.ValidationError("Failed to fetch payment details")
    return {
        "message": "Payment details fetched successfully",
        "code": 200,
        "data": payment,
    }


@app.post("/updateOrder", response_model=ApiResponse, response_model_exclude_none=True)
def update_order(
    data: UpdateOrderRequest, gateway: PaymentGateway = Depends(get_gateway)
):
    if not data.orderId or data.pmtRecID in (None, ""):
        raise errors.ValidationError("Order ID and Payment Receipt ID are required")

    order = gateway.fetch_order(data.orderId)
    # orders without notes come back with notes == []
    if not order or not isinstance(order.get("notes"), dict) or not order["notes"]:
        raise errors.ValidationError("Order notes not found")

    updated = gateway.update_order_notes(
        data.orderId, receipt_notes(order["notes"], str(data.pmtRecID))
    )
    return {"message": "Order updated successfully", "code": 200, "data": updated}


# ---------- webhook ----------
@app.post("/razorpay-webhook")
async def razorpay_webhook(
    request: Request,
    processor: WebhookProcessor = Depends(get_webhook_processor),
):
    raw = await request.body()
    signature = request.headers.get("X-Razorpay-Signature") or request.headers.get(
        "X-Provider-Signature"
    )

    try:
        result = await processor.handle(raw, signature)
    except errors.ApiError:
        raise
    except Exception as exc:
        logger.exception("Webhook processing failed")
        raise errors.UpstreamError("Webhook processing failed") from exc

    if not result.ok:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={
                "message": "Webhook processed with downstream failures",
                "code": 502,
                "data": result.calls,
            },
        )
    return {
        "message": "Webhook processed successfully",
        "code": 200,
        "data": {"status": result.status},
    }


def run():
    import uvicorn

    uvicorn.run("paybridge.main:app", host="0.0.0.0", port=get_settings().port)
