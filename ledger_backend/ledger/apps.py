# ledger/apps.py

from django.apps import AppConfig
from django.test.signals import setting_changed


def _reset_ledger_caches(*, setting, **kwargs):
    if not setting.startswith("LEDGER_"):
        return

    from ledger.services.account_registry import clear_registry_cache
    from ledger.services.posting_service import clear_posting_service_cache

    clear_registry_cache()
    clear_posting_service_cache()


class LedgerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ledger"
    verbose_name = "General Ledger"

    def ready(self):
        # override_settings(LEDGER_...) must not leave a stale registry behind
        setting_changed.connect(_reset_ledger_caches, dispatch_uid="ledger_reset_caches")
