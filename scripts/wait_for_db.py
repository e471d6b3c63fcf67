"""Block until Postgres accepts connections; used before `migrate` and the sync commands."""
import os
import sys
import time

import psycopg


def main():
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        dsn = database_url
    else:
        dsn = (
            f"dbname={os.getenv('POSTGRES_DB', 'esportsync')} "
            f"user={os.getenv('POSTGRES_USER', 'esportsync')} "
            f"password={os.getenv('POSTGRES_PASSWORD', 'esportsync')} "
            f"host={os.getenv('POSTGRES_HOST', 'db')} "
            f"port={os.getenv('POSTGRES_PORT', '5432')}"
        )
    retries = int(os.getenv("DB_CONNECT_RETRIES", "30"))
    delay = float(os.getenv("DB_CONNECT_DELAY", "1"))

    for attempt in range(1, retries + 1):
        try:
            with psycopg.connect(dsn, connect_timeout=5) as conn:
                conn.execute("SELECT 1")
            return 0
        except psycopg.OperationalError as exc:
            print(f"database not ready (attempt {attempt}/{retries}): {exc}", file=sys.stderr)
            if attempt == retries:
                break
            time.sleep(delay)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
