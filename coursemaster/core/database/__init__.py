"""Database connection module for CourseMaster."""

from coursemaster.core.database.async_cassandra import (
    ALL_TABLES_CQL,
    AsyncCassandraConnection,
    STORAGE_UNAVAILABLE_ERRORS,
    init_async_cassandra,
    init_async_tables,
    shutdown_async_cassandra,
)


__all__ = [
    "ALL_TABLES_CQL",
    "STORAGE_UNAVAILABLE_ERRORS",
    "AsyncCassandraConnection",
    "init_async_cassandra",
    "init_async_tables",
    "shutdown_async_cassandra",
]
