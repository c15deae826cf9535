import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from billing_relay.api.deps import get_reconciler
from billing_relay.domain.billing.errors import EnrichmentFailed, SignatureInvalid
from billing_relay.services.payments.reconciler import WebhookReconciler

logger = logging.getLogger(__name__)

router = APIRouter()


async def _receive(request: Request, reconciler: WebhookReconciler):
    # raw bytes: the signature covers the exact body
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        return await run_in_threadpool(reconciler.handle, payload, signature)
    except SignatureInvalid as e:
        logger.warning("Webhook signature rejected: %s", e.message)
        return PlainTextResponse(f"Webhook Error: {e.message}", status_code=e.status_code)
    except EnrichmentFailed as e:
        logger.error("Webhook enrichment failed: %s", e.message)
        return PlainTextResponse(f"Webhook Error: {e.message}", status_code=e.status_code)


@router.post("/stripe/webhook")
async def stripe_webhook(request: Request, reconciler: WebhookReconciler = Depends(get_reconciler)):
    """Receive Stripe webhooks (signature-verified)."""
    return await _receive(request, reconciler)


@router.post("/webhook", include_in_schema=False)
async def stripe_webhook_legacy(request: Request, reconciler: WebhookReconciler = Depends(get_reconciler)):
    return await _receive(request, reconciler)
