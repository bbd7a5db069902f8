"""
File: rishta/domains/payments/reconcile.py
Description: 付费标记周期性对账任务

用法 (cron / 定时任务):
    python -m rishta.domains.payments.reconcile

Author: jinmozhe
Created: 2026-10-11
"""

import asyncio

from rishta.core.logging import logger, setup_logging
from rishta.core.storage import get_image_store
from rishta.db.models.payment import Payment
from rishta.db.models.user import User
from rishta.db.session import AsyncSessionLocal, close_engine
from rishta.domains.payments.repository import PaymentRepository
from rishta.domains.payments.service import PaymentService
from rishta.domains.users.repository import UserRepository


async def run_reconciliation() -> int:
    """执行一次全量对账，返回补记的用户数"""
    async with AsyncSessionLocal() as session:
        service = PaymentService(
            repo=PaymentRepository(model=Payment, session=session),
            user_repo=UserRepository(model=User, session=session),
            store=get_image_store(),
        )
        user_ids = await service.reconcile_all_paid_flags()
    return len(user_ids)


async def main() -> None:
    setup_logging()
    try:
        updated = await run_reconciliation()
        logger.bind(updated=updated).info("Scheduled paid flag reconciliation done")
    finally:
        await close_engine()


if __name__ == "__main__":
    asyncio.run(main())
