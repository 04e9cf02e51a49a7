"""
PATH: manage.py

Django management entrypoint.

When DJANGO_SETTINGS_MODULE is unset (or names the bare settings package)
`manage.py test` runs on backend.settings.test and everything else on
backend.settings.dev. Production sets backend.settings.prod explicitly.

Shop maintenance:
- python manage.py reconcile_balances [--repair] [--strict]
- python manage.py export_backup --output backups/
"""

from __future__ import annotations

import os
import sys


def _default_settings(argv) -> str:
    if len(argv) > 1 and argv[1] == "test":
        return "backend.settings.test"
    return "backend.settings.dev"


def main() -> None:
    current = (os.environ.get("DJANGO_SETTINGS_MODULE") or "").strip()
    if current in ("", "backend.settings"):
        os.environ["DJANGO_SETTINGS_MODULE"] = _default_settings(sys.argv)

    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
