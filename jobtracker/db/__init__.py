"""
Database module - MongoDB connection.
"""
from jobtracker.db.mongodb import COLLECTIONS, connect_db, init_mongo_indexes, open_database

__all__ = [
    "COLLECTIONS",
    "connect_db",
    "init_mongo_indexes",
    "open_database",
]
