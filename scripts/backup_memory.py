#!/usr/bin/env python3
"""
Simple memory backup utility for the Vortex Memory Server

Creates a timestamped copy of the memory snapshot for safekeeping, after
checking that it still loads as a valid memory document.
"""

import sys
import shutil
import datetime
from pathlib import Path

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from vortex_memory_server.config import Config
from vortex_memory_server.memory import StorageError
from vortex_memory_server.memory.services import JsonMemoryStorage


def create_backup():
    """Create a backup of the current memory snapshot"""
    project_root = Path(__file__).parent.parent
    config = Config()

    snapshot = Path(config.get('storage', 'path', default='vortex_memorias.json'))
    if not snapshot.is_absolute():
        snapshot = project_root / snapshot

    backups_dir = project_root / "backups"

    if not snapshot.exists():
        print("ERROR: No memory snapshot found to backup")
        print(f"Looked for snapshot at: {snapshot}")
        return False

    try:
        store = JsonMemoryStorage(snapshot).load()
    except StorageError as e:
        print(f"ERROR: Snapshot is not a valid memory document: {e}")
        return False

    backups_dir.mkdir(exist_ok=True)

    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = backups_dir / f"memory_backup_{timestamp}.json"

    try:
        print(f"Creating backup: {backup_path.name}")
        shutil.copy2(snapshot, backup_path)
    except OSError as e:
        print(f"ERROR: Backup failed: {e}")
        return False

    size_kb = backup_path.stat().st_size / 1024
    print("Backup created successfully!")
    print(f"Location: {backup_path}")
    print(f"Memories: {len(store.memories)}")
    print(f"Size: {size_kb:.1f} KB")
    return True


def list_backups():
    """List all available backups"""
    project_root = Path(__file__).parent.parent
    backups_dir = project_root / "backups"

    backups = sorted(backups_dir.glob("memory_backup_*.json")) if backups_dir.exists() else []
    if not backups:
        print("No backups found")
        return

    print("Available backups:")
    for backup in backups:
        print(f"  {backup.name} ({backup.stat().st_size / 1024:.1f} KB)")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "list":
        list_backups()
    else:
        sys.exit(0 if create_backup() else 1)
