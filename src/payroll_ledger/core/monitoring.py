import sentry_sdk

from payroll_ledger.core.config import get_settings


def configure_error_monitoring() -> bool:
    settings = get_settings()
    if not settings.sentry_dsn:
        return False
    sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.2)
    return True
