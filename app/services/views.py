"""Best-effort view recording for detail reads."""

from __future__ import annotations

from app.core.logging import get_logger
from app.repositories import indicator_views_orm as views_repo


logger = get_logger("services.views")


async def record_view_best_effort(
    indicator_id: str,
    user_id: str | None = None,
    session_id: str | None = None,
    user_agent: str | None = None,
    ip_hash: str | None = None,
) -> None:
    """Record a view, logging instead of raising on failure.

    Runs after the detail response is produced, so a ledger outage never
    changes what the caller sees.
    """
    try:
        await views_repo.record_view(
            indicator_id,
            user_id=user_id,
            session_id=session_id,
            user_agent=user_agent,
            ip_hash=ip_hash,
        )
    except Exception as e:
        logger.warning(
            f"Failed to record view of {indicator_id}: {e}",
            extra={"indicator_id": indicator_id},
        )
