from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from payroll_ledger.api.routes import health
from payroll_ledger.core.config import get_settings
from payroll_ledger.core.logging import configure_logging, get_logger
from payroll_ledger.core.monitoring import configure_error_monitoring
from payroll_ledger.domains.accounting.router import router as accounting_router
from payroll_ledger.domains.payroll.router import router as payroll_router

settings = get_settings()

configure_logging(settings.log_level)
configure_error_monitoring()
logger = get_logger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.cors_origins] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(payroll_router)
app.include_router(accounting_router)


@app.on_event("startup")
def startup_event() -> None:
    logger.info("startup_complete", env=settings.env, tax_table_version=settings.tax_table_version)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "Payroll ledger API running", "environment": settings.env}
