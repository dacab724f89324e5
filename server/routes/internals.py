from fastapi import APIRouter, Depends, HTTPException
from reminder_worker.config import config as worker_config
from reminder_worker.errors import StoreError
from reminder_worker.sweep import run_sweep
from server.schemas import ActiveRemindersResponse, OccurrenceResponse, SweepResponse, TemplateResponse
from server.dependencies import get_channel, get_store, verify_cron_secret

router = APIRouter()

# =========================================================
# INTERNAL ENDPOINTS
# Used by the external cron trigger and for operator lookups
# =========================================================

@router.post("/sweep", response_model=SweepResponse, dependencies=[Depends(verify_cron_secret)])
def trigger_sweep(store = Depends(get_store), channel = Depends(get_channel)):
    """Run one materialize-then-dispatch sweep. Safe to call repeatedly."""
    report = run_sweep(store, channel, tz=worker_config.tz)
    return report.to_dict()


@router.get("/reminders/{phone}", response_model=ActiveRemindersResponse)
def get_active_reminders(phone: str, store = Depends(get_store)):
    """Pending one-time reminders and recurring templates for a WhatsApp number."""
    try:
        user = store.get_user_by_phone(phone)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        one_time = store.find_occurrences(user_id=user.id, delivered=False, one_time_only=True)
        recurring = store.list_templates(user_id=user.id)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return ActiveRemindersResponse(
        phone=user.phone,
        one_time=[OccurrenceResponse.model_validate(o) for o in one_time],
        recurring=[TemplateResponse.model_validate(t) for t in recurring],
    )
