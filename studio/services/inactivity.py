import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import and_, exists, select

from ..extensions import db
from ..models import Appointment, Client

logger = logging.getLogger(__name__)


def find_inactive_clients(
    window_days: int = 30, now: Optional[datetime] = None
) -> List[Client]:
    """Clients with some appointment history but no ``done`` visit in the window.

    Clients that never had an appointment are left out.
    """
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    cutoff = now - timedelta(days=window_days)

    recent_done = exists().where(
        and_(
            Appointment.client_id == Client.id,
            Appointment.status == "done",
            Appointment.date_time >= cutoff,
        )
    )
    any_history = exists().where(Appointment.client_id == Client.id)

    stmt = (
        select(Client)
        .where(~recent_done, any_history)
        .order_by(Client.user_id, Client.name)
    )
    return list(db.session.scalars(stmt).all())


def run_inactivity_scan(
    dispatcher, window_days: int = 30, now: Optional[datetime] = None
) -> int:
    """Notify every inactive client once; returns how many were found."""
    logger.info("Running inactive clients check...")
    clients = find_inactive_clients(window_days=window_days, now=now)
    logger.info("Found %d inactive client(s)", len(clients))

    for client in clients:
        dispatcher.send_inactive_client_notification(client.name)
        logger.info("Sent re-engagement notification for client %s", client.id)

    logger.info("Inactive clients check completed")
    return len(clients)
