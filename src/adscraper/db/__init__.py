"""Database helpers for the ad crawler."""

from .postgres import DbClient, sql_connect

__all__ = ["DbClient", "sql_connect"]
