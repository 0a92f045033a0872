"""DB session dependencies (composition root).

get_db backs the read path (tenant resolution, permission gate); mutation
services get a second session from get_db_for_write and open their own
transaction on it.
"""

from hive_admin.infrastructure.persistence.database import get_db, get_db_for_write

__all__ = ["get_db", "get_db_for_write"]
