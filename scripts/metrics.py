#!/usr/bin/env python3
"""
Print simple capture metrics for ad crawls.

Usage examples:
  python scripts/metrics.py --db-host 127.0.0.1
  python scripts/metrics.py --db-host 127.0.0.1 --crawl-id 12
"""
import argparse

from adscraper.db import sql_connect

SECTIONS = [
    (
        "Pages and ads per crawl",
        """
        SELECT c.id AS crawl_id, c.name,
               COUNT(DISTINCT p.id) AS pages,
               COUNT(a.id) AS ads
          FROM crawl c
          LEFT JOIN page p ON p.crawl_id = c.id
          LEFT JOIN ad a ON a.parent_page = p.id
         WHERE %(crawl_id)s::int IS NULL OR c.id = %(crawl_id)s::int
         GROUP BY c.id, c.name
         ORDER BY c.id DESC
        """,
    ),
    (
        "Ads by depth",
        """
        SELECT a.depth,
               COUNT(*) AS ads,
               COUNT(a.screenshot) AS with_screenshot,
               COUNT(a.chumbox_id) AS in_chumbox,
               COUNT(a.max_bid_price) AS with_bid
          FROM ad a
         WHERE %(crawl_id)s::int IS NULL OR a.crawl_id = %(crawl_id)s::int
         GROUP BY a.depth
         ORDER BY a.depth
        """,
    ),
    (
        "Chumbox platforms",
        """
        SELECT a.platform, COUNT(DISTINCT a.chumbox_id) AS chumboxes, COUNT(*) AS ads
          FROM ad a
         WHERE a.chumbox_id IS NOT NULL
           AND (%(crawl_id)s::int IS NULL OR a.crawl_id = %(crawl_id)s::int)
         GROUP BY a.platform
         ORDER BY ads DESC
        """,
    ),
    (
        "Top third-party hosts",
        """
        SELECT d.hostname, COUNT(DISTINCT d.ad_id) AS ads
          FROM ad_domain d
          JOIN ad a ON a.id = d.ad_id
         WHERE %(crawl_id)s::int IS NULL OR a.crawl_id = %(crawl_id)s::int
         GROUP BY d.hostname
         ORDER BY ads DESC
         LIMIT 20
        """,
    ),
]


def run_query(con, sql, params):
    with con.cursor() as cur:
        cur.execute(sql, params)
        cols = [d[0] for d in cur.description]
        rows = cur.fetchall()
    return cols, rows


def print_table(title, cols, rows):
    print(f"\n== {title} ==")
    if not rows:
        print("(no rows)")
        return
    widths = [max(len(str(c)), max((len(str(r[i])) for r in rows), default=0)) for i, c in enumerate(cols)]
    fmt = "  " + " | ".join("{:<" + str(w) + "}" for w in widths)
    print(fmt.format(*cols))
    print("  " + "-+-".join("-" * w for w in widths))
    for r in rows:
        print(fmt.format(*[str(x) for x in r]))


def main():
    ap = argparse.ArgumentParser(description="Print ad crawl metrics")
    ap.add_argument("--sql-conn", default="", help="Cloud SQL connection name if using sockets")
    ap.add_argument("--db-host", help="Host for TCP connection (e.g., 127.0.0.1 when using cloud-sql-proxy)")
    ap.add_argument("--db-port", type=int)
    ap.add_argument("--crawl-id", type=int, help="Restrict to one crawl")
    args = ap.parse_args()

    con = sql_connect(args.sql_conn, args.db_host, args.db_port)
    params = {"crawl_id": args.crawl_id}

    for title, sql in SECTIONS:
        try:
            cols, rows = run_query(con, sql, params)
            print_table(title, cols, rows)
        except Exception as e:
            con.rollback()
            print(f"\n== {title} ==\nERROR: {e}")

    con.close()


if __name__ == "__main__":
    main()
