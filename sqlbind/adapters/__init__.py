from sqlbind.adapters.dbapi import DBAPIConnection, DBAPIStatementHandle

__all__ = ("DBAPIConnection", "DBAPIStatementHandle")
