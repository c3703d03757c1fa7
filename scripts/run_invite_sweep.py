#!/usr/bin/env python3
"""
Cron script for expiring stale match invites and sending expiry reminders
Run this via cron every 15 minutes: */15 * * * * /path/to/venv/bin/python /path/to/run_invite_sweep.py
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from courtside.services import InviteService
from courtside.sql_repository import SqlAlchemyRepository
from courtside.utils.logger import get_logger
from courtside.database import init_db
from datetime import datetime

logger = get_logger('invite_sweep')


def main():
    """Main cron job function"""
    now = datetime.now()
    logger.info(f"Starting invite sweep at {now}")

    try:
        # Initialize database
        init_db()

        invite_service = InviteService(SqlAlchemyRepository())

        # Expire pending invites past their expiry
        expired = invite_service.expire_stale_invites(now)

        # Remind receivers of invites about to expire
        reminded = invite_service.send_expiry_reminders(now)

        logger.info(f"Invite sweep completed: {expired} expired, {reminded} reminded")

    except Exception as e:
        logger.error(f"Error in invite sweep: {str(e)}")
        raise


if __name__ == "__main__":
    main()
