# hms_billing/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hms_billing.core.config import settings
from hms_billing.core.logging_setup import setup_logging
from hms_billing.core.session import init_session
from hms_billing.api.exception_handlers import register_exception_handlers
from hms_billing.api.router import api_router
from hms_billing.services.billing_client import BillingApiClient
from hms_billing.services.billing_ledger import BillLedger


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_session()
    # loaded lazily on first request; see api.deps.get_ledger
    app.state.ledger = BillLedger(BillingApiClient())
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router, prefix=settings.API_V1_STR)


# Health
@app.get("/")
def root():
    return {"message": f"{settings.PROJECT_NAME} billing API running", "version": "v1"}
