"""Database connectors."""

from .mysql_connector import MySQLConnector

__all__ = ["MySQLConnector"]
