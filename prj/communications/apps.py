from django.apps import AppConfig


class CommunicationsConfig(AppConfig):
    name = 'communications'

    def ready(self):
        from . import receivers  # noqa: F401  (connects the ledger signals)
