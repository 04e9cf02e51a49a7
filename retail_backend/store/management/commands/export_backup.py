# store/management/commands/export_backup.py

from __future__ import annotations

import json
from pathlib import Path

from django.core.management.base import BaseCommand
from django.core.serializers.json import DjangoJSONEncoder

from store.services.backup import backup_filename, build_backup


class Command(BaseCommand):
    help = "Write a full JSON backup of the shop data to a file."

    def add_arguments(self, parser):
        parser.add_argument(
            "--output",
            default="",
            help="Target file or directory (default: ./backup_<YYYY-MM-DD>.json).",
        )

    def handle(self, *args, **options):
        target = Path(options.get("output") or ".")
        if target.is_dir():
            target = target / backup_filename()

        payload = build_backup()
        target.write_text(json.dumps(payload, cls=DjangoJSONEncoder, indent=2), encoding="utf-8")

        counts = ", ".join(
            f"{key}={len(rows)}" for key, rows in payload["data"].items() if isinstance(rows, list)
        )
        self.stdout.write(self.style.SUCCESS(f"Backup written to {target} ({counts})"))
