# scripts/export_backup.py
#
# Write a backup JSON next to the database, e.g. before upgrading:
#     python -m scripts.export_backup [output_dir]

import os
import sys

from core.config import DATA_DIR
from core.database import init_db
from services.backup_service import backup_filename, dumps_backup, export_backup


def main():
    out_dir = sys.argv[1] if len(sys.argv) > 1 else os.path.join(DATA_DIR, "backups")
    os.makedirs(out_dir, exist_ok=True)

    init_db()
    data = export_backup()
    path = os.path.join(out_dir, backup_filename())
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps_backup(data))

    print(f"Backup written to {path}")
    print(f"{len(data['patients'])} patient(s), {len(data['appointments'])} appointment(s), "
          f"{len(data['documents'])} document(s)")


if __name__ == "__main__":
    main()
