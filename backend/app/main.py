import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.routers import (
    bookings,
    disputes,
    facilities,
    fees,
    merchants,
    payment_instruments,
    payments,
    records,
    webhooks,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

OPENAPI_TAGS = [
    {"name": "Records", "description": "Permits, licenses, tax submissions, applications, bills."},
    {"name": "Fees", "description": "Quote service fees before paying."},
    {"name": "Payments", "description": "Pay for records, browse payment history, refund."},
    {"name": "Payment Instruments", "description": "Manage saved cards, bank accounts, wallets."},
    {"name": "Facilities", "description": "Bookable facilities, their slots and conflicts."},
    {"name": "Bookings", "description": "Book, cancel and review facility bookings."},
    {"name": "Disputes", "description": "Chargebacks reported by the payment gateway."},
    {"name": "Merchants", "description": "Staff administration of merchants and fee profiles."},
    {"name": "Webhooks", "description": "Asynchronous events from the payment gateway."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Backend for the municipal e-government portal. "
        "Residents pay for permits, licenses, tax filings, applications and bills "
        "and book municipal facilities; staff review and approve."
    ),
    openapi_tags=OPENAPI_TAGS,
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Idempotency-Replayed"],
)


@app.middleware("http")
async def options_handler(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": "*",
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Max-Age": "86400",
            },
        )
    return await call_next(request)


app.include_router(records.router, prefix="/v1/records", tags=["Records"])
app.include_router(fees.router, prefix="/v1/fees", tags=["Fees"])
app.include_router(payments.router, prefix="/v1/payments", tags=["Payments"])
app.include_router(
    payment_instruments.router,
    prefix="/v1/payment_instruments",
    tags=["Payment Instruments"],
)
app.include_router(facilities.router, prefix="/v1/facilities", tags=["Facilities"])
app.include_router(bookings.router, prefix="/v1/bookings", tags=["Bookings"])
app.include_router(disputes.router, prefix="/v1/disputes", tags=["Disputes"])
app.include_router(merchants.router, prefix="/v1/merchants", tags=["Merchants"])
app.include_router(webhooks.router, tags=["Webhooks"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
