"""Example: drive the service layer directly (no Flask).

Controllers are a thin layer; the business rules live in the services.
"""

import importlib

from config import get_settings_module

from src.attendance_fines.attendance_fines.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    for event in container.event_service.list_events(1):
        view = container.event_service.qr_view(org_id=1, event_id=event.event_id)
        print(event.title, event.timeframe, view.state.value, view.seconds_until_release)

    for report in container.reconciler.reconcile_due():
        print(report)


if __name__ == "__main__":
    main()
