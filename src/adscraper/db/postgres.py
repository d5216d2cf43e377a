"""Postgres persistence for crawls, pages, ads and their child rows."""

from __future__ import annotations

import itertools
import os
from typing import Any, Iterable

import psycopg2
from psycopg2 import sql

from ..logging import jlog
from ..models import ExternalUrl, ScrapedIFrame


def sql_connect(sql_conn: str | None, db_host: str | None = None, db_port: int | None = None):
    """Return a psycopg2 connection using either TCP or a Cloud SQL socket."""

    dbname = os.getenv("DB_NAME", "adscraper")
    user = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD")
    if not password:
        raise RuntimeError("DB_PASSWORD environment variable is required for database connections")

    if db_host:
        return psycopg2.connect(
            host=db_host,
            port=db_port or 5432,
            dbname=dbname,
            user=user,
            password=password,
            connect_timeout=10,
            sslmode=os.getenv("DB_SSLMODE", "prefer"),
        )

    if not sql_conn:
        raise RuntimeError("sql_conn must be provided when db_host is not set")
    return psycopg2.connect(
        host=f"/cloudsql/{sql_conn}",
        dbname=dbname,
        user=user,
        password=password,
        connect_timeout=10,
    )


class DbClient:
    """Thin insert-oriented client over one psycopg2 connection.

    Every insert commits on its own; callers rely on the returned id being
    usable as a foreign key immediately. With ``dry_run`` nothing is written
    and ids come from a local counter.
    """

    def __init__(self, con, *, dry_run: bool = False) -> None:
        self._con = con
        self._dry_run = dry_run
        self._dry_run_ids = itertools.count(1)

    def insert(self, table: str, data: dict[str, Any], *, returning: str | None = "id") -> Any:
        columns = list(data)
        if self._dry_run:
            jlog("info", event="dry_run_insert", table=table, columns=columns)
            return next(self._dry_run_ids) if returning else None
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
            values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        if returning:
            query = query + sql.SQL(" RETURNING {}").format(sql.Identifier(returning))
        with self._con.cursor() as cur:
            cur.execute(query, [data[c] for c in columns])
            row = cur.fetchone() if returning else None
        self._con.commit()
        return row[0] if row else None

    def archive_ad(self, row: dict[str, Any]) -> int:
        return self.insert("ad", row)

    def archive_external_urls(self, urls: Iterable[ExternalUrl], ad_id: int) -> None:
        for ext in urls:
            self.insert("ad_domain", {"ad_id": ad_id, "url": ext.url, "hostname": ext.hostname}, returning=None)

    def archive_scraped_iframe(self, iframe: ScrapedIFrame, ad_id: int, parent_iframe_id: int | None = None) -> int:
        """Store an iframe and, recursively, the frames nested inside it."""

        iframe_id = self.insert(
            "iframe",
            {"parent_ad": ad_id, "parent_iframe": parent_iframe_id, "url": iframe.url, "html": iframe.html},
        )
        for child in iframe.children:
            self.archive_scraped_iframe(child, ad_id, iframe_id)
        return iframe_id

    def close(self) -> None:
        if self._con is not None:
            self._con.close()


__all__ = ["DbClient", "sql_connect"]
