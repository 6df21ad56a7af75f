from sqlalchemy import select

from ..extensions import db


def get_owned(model, entity_id: int, user_id: int):
    """Fetch ``model`` by id only if ``user_id`` owns it, else None.

    Rows of other users look exactly like missing rows.
    """
    return db.session.scalar(
        select(model).where(model.id == entity_id, model.user_id == user_id)
    )
