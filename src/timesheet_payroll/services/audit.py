"""Field-level audit notifications.

The engine emits one entry per directly edited field; it never reads the
log back. Recomputing cached breakdowns is not audited.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Mapping, Protocol, runtime_checkable

from timesheet_payroll.services.record_store import RecordStore

ALL_FIELDS = "all"


@dataclass(frozen=True)
class AuditEntry:
    """One field change on one row."""

    table_name: str
    row_id: int
    field: str
    old_val: str | None
    new_val: str | None
    changed_by: int | None


@runtime_checkable
class AuditSink(Protocol):
    """Destination for audit entries."""

    async def record(self, tenant_id: int, entry: AuditEntry) -> None:
        ...


class StoreAuditSink:
    """Writes entries to the ``audit_log`` table."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def record(self, tenant_id: int, entry: AuditEntry) -> None:
        await self.store.append_audit(
            tenant_id,
            table_name=entry.table_name,
            row_id=entry.row_id,
            field=entry.field,
            old_val=entry.old_val,
            new_val=entry.new_val,
            changed_by=entry.changed_by,
        )


def audit_text(value: Any) -> str | None:
    """Stored text form of a field value."""
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    return str(value)


def snapshot_json(values: Mapping[str, Any]) -> str:
    return json.dumps({k: audit_text(v) for k, v in values.items()}, sort_keys=True)


class AuditRecorder:
    """Builds audit entries for one acting user and hands them to a sink."""

    def __init__(self, sink: AuditSink, actor_id: int | None):
        self.sink = sink
        self.actor_id = actor_id

    async def created(
        self, tenant_id: int, table: str, row_id: int, values: Mapping[str, Any]
    ) -> None:
        await self.sink.record(
            tenant_id,
            AuditEntry(table, row_id, ALL_FIELDS, None, snapshot_json(values), self.actor_id),
        )

    async def deleted(
        self, tenant_id: int, table: str, row_id: int, values: Mapping[str, Any]
    ) -> None:
        await self.sink.record(
            tenant_id,
            AuditEntry(table, row_id, ALL_FIELDS, snapshot_json(values), None, self.actor_id),
        )

    async def changed(
        self,
        tenant_id: int,
        table: str,
        row_id: int,
        before: Mapping[str, Any],
        after: Mapping[str, Any],
    ) -> list[AuditEntry]:
        """One entry per field of ``after`` whose value differs from ``before``."""
        entries: list[AuditEntry] = []
        for field_name, new_value in after.items():
            old_text = audit_text(before.get(field_name))
            new_text = audit_text(new_value)
            if old_text == new_text:
                continue
            entry = AuditEntry(table, row_id, field_name, old_text, new_text, self.actor_id)
            await self.sink.record(tenant_id, entry)
            entries.append(entry)
        return entries
