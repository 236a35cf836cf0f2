"""Audit trail writer.

Rows are added to the caller's session so they commit (or roll back) together
with the action they describe.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from reelpay.models.db.audit_logs import AuditLog
from reelpay.models.db.enums import AuditAction


def record_audit(
    session: Session,
    *,
    actor_id: Optional[int],
    action: AuditAction,
    target_type: str,
    target_id: int,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    row = AuditLog(
        actor_id=actor_id,
        action_type=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
    )
    session.add(row)
    return row


__all__ = ["record_audit"]
