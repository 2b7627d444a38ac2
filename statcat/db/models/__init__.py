"""statcat Database Models.

All models use SQLAlchemy 2.0 syntax and work on SQLite and PostgreSQL.
"""

from statcat.db.base import Base
from statcat.db.models.ingest_checkpoint import IngestCheckpoint
from statcat.db.models.message import Message

__all__ = [
    "Base",
    "IngestCheckpoint",
    "Message",
]
