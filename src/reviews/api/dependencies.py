"""Caller identity for review routes.

Authentication happens upstream. The gateway forwards the verified caller
as ``X-Caller-Id`` and the admin capability as ``X-Caller-Admin``.
"""

from dataclasses import dataclass

from fastapi import Header, HTTPException


@dataclass(frozen=True)
class CallerContext:
    caller_id: str
    is_admin: bool = False


def caller_context(
    x_caller_id: str = Header(default=""),
    x_caller_admin: str = Header(default=""),
) -> CallerContext:
    if not x_caller_id:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    return CallerContext(
        caller_id=x_caller_id,
        is_admin=x_caller_admin.strip().lower() in ("1", "true", "yes"),
    )


def admin_context(
    x_caller_id: str = Header(default=""),
    x_caller_admin: str = Header(default=""),
) -> CallerContext:
    caller = caller_context(x_caller_id, x_caller_admin)
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Administrator capability required")
    return caller
