"""Recycle bin metrics."""

from opentelemetry import metrics

meter = metrics.get_meter(__name__)

trash_captured_total = meter.create_counter(
    name="trash_entries_captured_total",
    description="Records moved to the trash",
)

trash_restored_total = meter.create_counter(
    name="trash_entries_restored_total",
    description="Trash entries restored into the live tables",
)

trash_restore_failures_total = meter.create_counter(
    name="trash_restore_failures_total",
    description="Restore attempts that were rejected or rolled back",
)

trash_purged_total = meter.create_counter(
    name="trash_entries_purged_total",
    description="Trash entries permanently deleted",
)

trash_pending = meter.create_up_down_counter(
    name="trash_entries_pending",
    description="Entries currently awaiting restoration",
)


def record_capture(kind: str) -> None:
    trash_captured_total.add(1, {"kind": kind})
    trash_pending.add(1, {"kind": kind})


def record_restore(kind: str) -> None:
    trash_restored_total.add(1, {"kind": kind})
    trash_pending.add(-1, {"kind": kind})


def record_restore_failure(kind: str, reason: str) -> None:
    trash_restore_failures_total.add(1, {"kind": kind, "reason": reason})


def record_purge(count: int, mode: str) -> None:
    """Record purged entries; ``mode`` is ``one`` or ``restored``."""
    if count:
        trash_purged_total.add(count, {"mode": mode})


def record_pending_purged(kind: str) -> None:
    """An entry still awaiting restoration was purged."""
    trash_pending.add(-1, {"kind": kind})
