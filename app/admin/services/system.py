import logging
from typing import Dict

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import with_db_transaction
from app.core.logging_utils import log_business_event
from app.admin.models import Activity, Club, ClubMember, Config, Token, User
from app.admin.services.permissions import require_action
from app.admin.services.users import get_user

logger = logging.getLogger(__name__)

PURGEABLE_MODELS = (Token, ClubMember, Activity, Club, Config, User)


async def purge_deleted(session: AsyncSession, operator_id: int) -> Dict[str, int]:
    """Hard delete every soft-deleted row; returns counts per table"""
    operator = await get_user(session, operator_id)
    require_action(operator, "purge")

    async def _purge(session: AsyncSession):
        counts = {}
        for model in PURGEABLE_MODELS:
            result = await session.execute(
                delete(model)
                .where(model.is_deleted.is_(True))
                .execution_options(synchronize_session=False)
            )
            counts[model.__tablename__] = result.rowcount
        return counts

    counts = await with_db_transaction(session, _purge)
    logger.warning(
        "Soft-deleted rows purged",
        extra={"counts": counts, "operator_id": operator_id},
    )
    log_business_event("deleted_rows_purged", "system", 0, counts)
    return counts
