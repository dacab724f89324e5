from fastapi import APIRouter
from . import internals, prometheus, webhook

router = APIRouter()

router.include_router(webhook.router, prefix="/webhook", tags=["Webhook"])
router.include_router(prometheus.router, prefix="/metrics", tags=["Metrics"])
router.include_router(internals.router, prefix="/internals", tags=["Internals"])
