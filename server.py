# server.py: composition root for the billing relay
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from billing_relay.api.routers import billing as billing_router
from billing_relay.api.routers import webhooks as webhooks_router
from billing_relay.config import Settings
from billing_relay.domain.billing.errors import BillingError
from billing_relay.services.payments.factory import (
    build_billing_actions,
    build_gateway,
    build_reconciler,
    build_sinks,
)
from billing_relay.services.payments.sinks import SnapshotSink

logger = logging.getLogger("uvicorn.error")

SERVICE_NAME = "billing-relay"
VERSION = "0.3.0"


async def _billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"error": exc.message, "code": exc.code}, status_code=exc.status_code)


def create_app(
    settings: Optional[Settings] = None,
    gateway=None,
    sinks: Optional[list[SnapshotSink]] = None,
) -> FastAPI:
    """Build the FastAPI app with its collaborators.

    `gateway` (Stripe access) and `sinks` are built from settings unless
    given; tests pass fakes here.
    """
    settings = settings or Settings.from_env()
    gateway = gateway if gateway is not None else build_gateway(settings)
    sinks = sinks if sinks is not None else build_sinks(settings)

    app = FastAPI(
        title="Billing Relay API",
        description="Stripe webhook reconciliation + checkout / portal / subscription lifecycle",
        version=VERSION,
    )

    app.state.settings = settings
    app.state.reconciler = build_reconciler(settings, gateway, sinks)
    app.state.billing_actions = build_billing_actions(settings, gateway)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BillingError, _billing_error_handler)

    @app.get("/")
    def status():
        return {"status": "ok", "service": SERVICE_NAME, "version": VERSION}

    app.include_router(webhooks_router.router)
    app.include_router(billing_router.router)

    logger.info(
        "Billing relay ready (sinks=%s, forwarding=%s)",
        [s.name for s in sinks],
        settings.forwarding_enabled,
    )
    return app
