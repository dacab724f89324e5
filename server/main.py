import logging
from fastapi import FastAPI
from sqlalchemy import inspect
from server.database import engine, Base
from server import models  # noqa: F401  (registers tables on Base)
from server.routes import router
from server.routes.prometheus import metrics_middleware
from reminder_worker.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# =========================================================
# FASTAPI APP
# =========================================================

app = FastAPI(title="WhatsApp Reminder Bot")

# Register Prometheus middleware
app.middleware("http")(metrics_middleware)

# Include API Router
app.include_router(router)

@app.get("/health")
def health():
    return {"status": "ok"}

# =========================================================
# STARTUP / SHUTDOWN
# =========================================================
@app.on_event("startup")
def init_database():
    logger.info("🔄 Creating database tables if not exist...")
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    missing = [t for t in Base.metadata.sorted_tables if t.name not in existing_tables]
    if missing:
        Base.metadata.create_all(bind=engine, tables=missing)
        logger.info(f"✅ Tables created: {[t.name for t in missing]}")
    else:
        logger.info(f"ℹ️ Tables already exist: {sorted(existing_tables)}")

@app.on_event("startup")
def start_reminder_scheduler():
    start_scheduler()

@app.on_event("shutdown")
def stop_reminder_scheduler():
    stop_scheduler()
