from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(session: AsyncSession, model):
    """INSERT construct supporting ON CONFLICT for the session's backend."""
    if session.bind.dialect.name == "postgresql":
        return pg_insert(model)
    return sqlite_insert(model)
