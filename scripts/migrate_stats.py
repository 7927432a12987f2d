#!/usr/bin/env python3
"""
Notification Stats Migration Script

Converts notification stats stored in the old flat layout
(captureAccepted, draftDismissed, patternSuccess, ...) into the per-kind
layout, or resets them to zero.

Usage:
    python scripts/migrate_stats.py [--dry-run] [--reset] [--state-path PATH]
"""

import sys
import argparse
import json
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def main():
    parser = argparse.ArgumentParser(description="Migrate or reset notification stats")
    parser.add_argument("--dry-run", action="store_true", help="Print what would be done without executing")
    parser.add_argument("--reset", action="store_true", help="Reset all notification stats to zero")
    parser.add_argument("--state-path", type=str, default=None, help="State file (defaults to the configured data dir)")
    args = parser.parse_args()

    from codedraft.common.config import load_config
    from codedraft.common.storage import JsonStateStore
    from codedraft.proactive.stats_store import (
        LEGACY_STATS_KEY,
        STATS_KEY,
        NotificationStatsStore,
        is_legacy_layout,
        migrate_legacy_stats,
    )

    state_path = Path(args.state_path) if args.state_path else load_config().storage.state_path
    print(f"[Migration] State file: {state_path}")

    if not state_path.exists():
        print("[Migration] No state file found, nothing to do")
        return

    backend = JsonStateStore(state_path)
    store = NotificationStatsStore(backend)

    if args.reset:
        if args.dry_run:
            print("[Migration] DRY RUN - would reset notification stats")
            return
        store.reset()
        print("[Migration] Notification stats reset")
        return

    current = backend.read(STATS_KEY)
    legacy = backend.read(LEGACY_STATS_KEY)

    if is_legacy_layout(current):
        source = current
    elif current is None and is_legacy_layout(legacy):
        source = legacy
    else:
        print("[Migration] Stats already use the current layout")
        return

    migrated = migrate_legacy_stats(source)
    print("[Migration] Migrated stats:")
    print(json.dumps(migrated.model_dump(mode="json"), indent=2))

    if args.dry_run:
        print("[Migration] DRY RUN - no changes will be made")
        return

    try:
        backend.write(STATS_KEY, migrated.model_dump(mode="json"))
        backend.delete(LEGACY_STATS_KEY)
    except OSError as e:
        print(f"[Migration] ERROR: Failed to write state file: {e}")
        sys.exit(1)

    print("[Migration] Complete")


if __name__ == "__main__":
    main()
