from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette import status

from config.config import get_settings
from db.create_database import create_tables
from errors.handlers import register_exception_handlers
from routers import checkout, events, tickets
from services.delivery import TicketDelivery
from services.payment_gate import StripePaymentGate

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    app.state.payment_gate = StripePaymentGate(
        api_key=settings.stripe_api_key,
        webhook_secret=settings.stripe_webhook_secret,
        expire_time=settings.expire_time,
    )
    app.state.delivery = TicketDelivery(settings.rabbitmq_url, settings.domain)
    await app.state.delivery.connect()
    yield
    # Cleanup
    await app.state.delivery.close()


app = FastAPI(
    lifespan=lifespan,
    title="Seat Ticketing API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    servers=[{"url": "http://localhost:8000", "description": "Local server"}],
)

# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get(
    "/health",
    tags=["healthcheck"],
    summary="Perform a Health Check",
    response_description="Return HTTP Status Code 200 (OK)",
    status_code=status.HTTP_200_OK,
)
def get_health():
    return {"status": "ok"}


app.include_router(checkout.router)
app.include_router(events.router)
app.include_router(tickets.router)
