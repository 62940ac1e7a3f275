import json
import datetime
import logging
import sqlite3
from typing import Generator, Iterable
from contextlib import contextmanager

import psycopg2
import psycopg2.extras

from .config import get_database_url
from .models import (
    User,
    Booking,
    MatchRequest,
    MatchResult,
    PENDING,
    DEFAULT_RANK,
)

logger = logging.getLogger(__name__)

# marks a filter argument that was not supplied, so ``None`` can mean NULL
_UNSET = object()


class _PgCursor:
    def __init__(self, cursor):
        self._c = cursor

    def execute(self, query, params=None):
        q = query.replace("?", "%s")
        self._c.execute(q, params or [])
        return self

    def executemany(self, query, seq):
        q = query.replace("?", "%s")
        self._c.executemany(q, seq)
        return self

    def fetchone(self):
        return self._c.fetchone()

    def fetchall(self):
        return self._c.fetchall()

    def __iter__(self):
        return iter(self._c)

    def __getattr__(self, name):
        return getattr(self._c, name)


class _PgConnection:
    def __init__(self, conn):
        self._conn = conn

    def cursor(self, *a, **kw):
        return _PgCursor(self._conn.cursor(*a, **kw))

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._conn.close()

    def __getattr__(self, name):
        return getattr(self._conn, name)


def _sqlite_path(url: str) -> str:
    """Return the file path of a ``sqlite:///`` URL."""
    if url.startswith("sqlite:///"):
        return url[len("sqlite:///"):]
    return url


def _ts(value: datetime.datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_ts(value: str | None) -> datetime.datetime | None:
    return datetime.datetime.fromisoformat(value) if value else None


def _status_clause(column: str, status) -> tuple[str, list]:
    """Return an SQL condition matching one status or any of several."""
    if isinstance(status, str):
        return f"{column} = ?", [status]
    values = list(status)
    marks = ",".join("?" for _ in values)
    return f"{column} IN ({marks})", values


def _row_to_user(row) -> User:
    return User(
        user_id=row["user_id"],
        username=row["username"],
        rank_points=row["rank_points"],
        rank=row["rank"] or DEFAULT_RANK,
        games_played=row["games_played"],
        games_won=row["games_won"],
        achievements=json.loads(row["achievements"] or "[]"),
    )


def _row_to_booking(row) -> Booking:
    return Booking(
        booking_id=row["booking_id"],
        court_id=row["court_id"],
        user_id=row["user_id"],
        start_time=_parse_ts(row["start_time"]),
        end_time=_parse_ts(row["end_time"]),
    )


def _row_to_request(row) -> MatchRequest:
    return MatchRequest(
        request_id=row["request_id"],
        match_type=row["match_type"],
        created_by_id=row["created_by_id"],
        booking_id=row["booking_id"],
        partner_id=row["partner_id"],
        status=row["status"],
        opponent_id=row["opponent_id"],
        created_at=_parse_ts(row["created_at"]) or datetime.datetime.now(),
    )


def _row_to_result(row) -> MatchResult:
    return MatchResult(
        result_id=row["result_id"],
        match_id=row["match_id"],
        winner1_id=row["winner1_id"],
        winner2_id=row["winner2_id"],
        loser1_id=row["loser1_id"],
        loser2_id=row["loser2_id"],
        confirmed=bool(row["confirmed"]),
        created_at=_parse_ts(row["created_at"]) or datetime.datetime.now(),
    )


class Store:
    """Relational store for users, bookings, match requests and results.

    ``url`` is either a ``sqlite:///path`` URL or a PostgreSQL DSN. Every
    method accepts an optional ``conn`` so several writes can share one
    :meth:`transaction`; without it the call commits on its own.
    """

    def __init__(self, url: str | None = None):
        self.url = url or get_database_url()
        self.is_pg = self.url.startswith("postgres")
        self._schema_ready = False

    def _connect(self):
        """Return a DB connection based on :attr:`url`."""
        if self.is_pg:
            conn = _PgConnection(
                psycopg2.connect(self.url, cursor_factory=psycopg2.extras.RealDictCursor)
            )
        else:
            conn = sqlite3.connect(_sqlite_path(self.url))
            conn.row_factory = sqlite3.Row
        if not self._schema_ready:
            self._init_schema(conn)
            self._schema_ready = True
        return conn

    @contextmanager
    def transaction(self) -> Generator[object, None, None]:
        """Context manager yielding a connection with an active transaction."""
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception as e:
            logger.warning("transaction rolled back: %s", e)
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _cursor(self, conn=None):
        if conn is not None:
            yield conn.cursor()
            return
        with self.transaction() as own:
            yield own.cursor()

    def _init_schema(self, conn) -> None:
        cur = conn.cursor()
        pk = "SERIAL PRIMARY KEY" if self.is_pg else "INTEGER PRIMARY KEY AUTOINCREMENT"
        cur.execute(
            f"""CREATE TABLE IF NOT EXISTS users (
            user_id {pk},
            username TEXT NOT NULL,
            rank_points INTEGER NOT NULL DEFAULT 0,
            rank TEXT,
            games_played INTEGER NOT NULL DEFAULT 0,
            games_won INTEGER NOT NULL DEFAULT 0,
            achievements TEXT
        )"""
        )
        cur.execute(
            f"""CREATE TABLE IF NOT EXISTS bookings (
            booking_id {pk},
            court_id INTEGER,
            user_id INTEGER,
            start_time TEXT,
            end_time TEXT
        )"""
        )
        cur.execute(
            f"""CREATE TABLE IF NOT EXISTS match_requests (
            request_id {pk},
            booking_id INTEGER,
            match_type TEXT NOT NULL,
            created_by_id INTEGER NOT NULL,
            partner_id INTEGER,
            status TEXT NOT NULL,
            opponent_id INTEGER,
            created_at TEXT
        )"""
        )
        cur.execute(
            f"""CREATE TABLE IF NOT EXISTS match_results (
            result_id {pk},
            match_id INTEGER NOT NULL UNIQUE,
            winner1_id INTEGER,
            winner2_id INTEGER,
            loser1_id INTEGER,
            loser2_id INTEGER,
            confirmed INTEGER NOT NULL DEFAULT 1,
            created_at TEXT
        )"""
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_match_requests_status ON match_requests (status, match_type)"
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_match_requests_booking ON match_requests (booking_id)"
        )
        conn.commit()

    def _insert(self, cur, table: str, key: str, fields: dict) -> int:
        cols = ", ".join(fields)
        marks = ",".join("?" for _ in fields)
        query = f"INSERT INTO {table}({cols}) VALUES ({marks})"
        if self.is_pg:
            row = cur.execute(query + f" RETURNING {key}", list(fields.values())).fetchone()
            return row[key]
        cur.execute(query, list(fields.values()))
        return cur.lastrowid

    # users

    def create_user(
        self,
        username: str,
        rank_points: int = 0,
        rank: str = DEFAULT_RANK,
        games_played: int = 0,
        games_won: int = 0,
        achievements: list[str] | None = None,
        conn=None,
    ) -> User:
        """Insert a user record and return it."""
        user = User(
            user_id=0,
            username=username,
            rank_points=rank_points,
            rank=rank,
            games_played=games_played,
            games_won=games_won,
            achievements=list(achievements or []),
        )
        with self._cursor(conn) as cur:
            user.user_id = self._insert(
                cur,
                "users",
                "user_id",
                {
                    "username": user.username,
                    "rank_points": user.rank_points,
                    "rank": user.rank,
                    "games_played": user.games_played,
                    "games_won": user.games_won,
                    "achievements": json.dumps(user.achievements),
                },
            )
        return user

    def get_user(self, user_id: int, conn=None) -> User | None:
        """Return a single :class:`User` by id or ``None`` if not found."""
        with self._cursor(conn) as cur:
            row = cur.execute("SELECT * FROM users WHERE user_id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None

    def update_user(self, user_id: int, conn=None, **fields) -> None:
        """Update columns of a user record."""
        if not fields:
            return
        cols = []
        values = []
        for k, v in fields.items():
            if k == "achievements":
                v = json.dumps(list(v))
            cols.append(f"{k} = ?")
            values.append(v)
        values.append(user_id)
        with self._cursor(conn) as cur:
            cur.execute(f"UPDATE users SET {', '.join(cols)} WHERE user_id = ?", values)

    def list_users(self, conn=None) -> list[User]:
        """Return all users, highest ``rank_points`` first."""
        with self._cursor(conn) as cur:
            rows = cur.execute(
                "SELECT * FROM users ORDER BY rank_points DESC, user_id ASC"
            ).fetchall()
        return [_row_to_user(r) for r in rows]

    # bookings

    def create_booking(
        self,
        court_id: int | None = None,
        user_id: int | None = None,
        start_time: datetime.datetime | None = None,
        end_time: datetime.datetime | None = None,
        conn=None,
    ) -> Booking:
        """Insert a booking record. Used for seeding; bookings are read-only here."""
        with self._cursor(conn) as cur:
            booking_id = self._insert(
                cur,
                "bookings",
                "booking_id",
                {
                    "court_id": court_id,
                    "user_id": user_id,
                    "start_time": _ts(start_time),
                    "end_time": _ts(end_time),
                },
            )
        return Booking(booking_id, court_id, user_id, start_time, end_time)

    def get_booking(self, booking_id: int, conn=None) -> Booking | None:
        with self._cursor(conn) as cur:
            row = cur.execute(
                "SELECT * FROM bookings WHERE booking_id = ?", (booking_id,)
            ).fetchone()
        return _row_to_booking(row) if row else None

    # match requests

    def create_match_request(
        self,
        match_type: str,
        created_by_id: int,
        booking_id: int | None = None,
        partner_id: int | None = None,
        status: str = PENDING,
        conn=None,
    ) -> MatchRequest:
        """Insert a match request and return it with its generated id."""
        request = MatchRequest(
            request_id=0,
            match_type=match_type,
            created_by_id=created_by_id,
            booking_id=booking_id,
            partner_id=partner_id,
            status=status,
        )
        with self._cursor(conn) as cur:
            request.request_id = self._insert(
                cur,
                "match_requests",
                "request_id",
                {
                    "booking_id": booking_id,
                    "match_type": match_type,
                    "created_by_id": created_by_id,
                    "partner_id": partner_id,
                    "status": status,
                    "opponent_id": None,
                    "created_at": _ts(request.created_at),
                },
            )
        return request

    def get_match_request(self, request_id: int, conn=None) -> MatchRequest | None:
        with self._cursor(conn) as cur:
            row = cur.execute(
                "SELECT * FROM match_requests WHERE request_id = ?", (request_id,)
            ).fetchone()
        return _row_to_request(row) if row else None

    def find_match_requests(
        self,
        conn=None,
        *,
        status=None,
        match_type: str | None = None,
        booking_id=_UNSET,
        exclude_id: int | None = None,
        has_booking: bool | None = None,
        involving: int | None = None,
    ) -> list[MatchRequest]:
        """Return match requests matching every given filter.

        ``status`` may be a single value or an iterable of values. Results
        come back in creation order.
        """
        conds = []
        params: list = []
        if status is not None:
            clause, values = _status_clause("status", status)
            conds.append(clause)
            params.extend(values)
        if match_type is not None:
            conds.append("match_type = ?")
            params.append(match_type)
        if booking_id is not _UNSET:
            if booking_id is None:
                conds.append("booking_id IS NULL")
            else:
                conds.append("booking_id = ?")
                params.append(booking_id)
        if exclude_id is not None:
            conds.append("request_id <> ?")
            params.append(exclude_id)
        if has_booking is True:
            conds.append("booking_id IS NOT NULL")
        elif has_booking is False:
            conds.append("booking_id IS NULL")
        if involving is not None:
            conds.append("(created_by_id = ? OR partner_id = ?)")
            params.extend([involving, involving])
        query = "SELECT * FROM match_requests"
        if conds:
            query += " WHERE " + " AND ".join(conds)
        query += " ORDER BY request_id"
        with self._cursor(conn) as cur:
            rows = cur.execute(query, params).fetchall()
        return [_row_to_request(r) for r in rows]

    def update_match_request(
        self,
        request_id: int,
        conn=None,
        expected_status=None,
        expected_opponent_id=None,
        **fields,
    ) -> int:
        """Update one request and return the number of rows changed.

        With ``expected_status`` the row is only touched while its current
        status matches, which makes the update a compare-and-swap.
        ``expected_opponent_id`` additionally pins the current opponent link.
        """
        return self.update_match_requests(
            [request_id],
            conn=conn,
            expected_status=expected_status,
            expected_opponent_id=expected_opponent_id,
            **fields,
        )

    def update_match_requests(
        self,
        ids: Iterable[int],
        conn=None,
        expected_status=None,
        expected_opponent_id=None,
        **fields,
    ) -> int:
        """Apply the same field values to several requests."""
        ids = list(ids)
        if not ids or not fields:
            return 0
        cols = [f"{k} = ?" for k in fields]
        params = list(fields.values())
        marks = ",".join("?" for _ in ids)
        query = f"UPDATE match_requests SET {', '.join(cols)} WHERE request_id IN ({marks})"
        params.extend(ids)
        if expected_status is not None:
            clause, values = _status_clause("status", expected_status)
            query += f" AND {clause}"
            params.extend(values)
        if expected_opponent_id is not None:
            query += " AND opponent_id = ?"
            params.append(expected_opponent_id)
        with self._cursor(conn) as cur:
            cur.execute(query, params)
            changed = cur.rowcount
        logger.debug("updated %s match request(s) %s with %s", changed, ids, fields)
        return changed

    # match results

    def create_match_result(
        self,
        match_id: int,
        winner1_id: int,
        winner2_id: int,
        loser1_id: int,
        loser2_id: int,
        confirmed: bool = True,
        conn=None,
    ) -> MatchResult:
        result = MatchResult(
            result_id=0,
            match_id=match_id,
            winner1_id=winner1_id,
            winner2_id=winner2_id,
            loser1_id=loser1_id,
            loser2_id=loser2_id,
            confirmed=confirmed,
        )
        with self._cursor(conn) as cur:
            result.result_id = self._insert(
                cur,
                "match_results",
                "result_id",
                {
                    "match_id": match_id,
                    "winner1_id": winner1_id,
                    "winner2_id": winner2_id,
                    "loser1_id": loser1_id,
                    "loser2_id": loser2_id,
                    "confirmed": int(confirmed),
                    "created_at": _ts(result.created_at),
                },
            )
        return result

    def get_match_result(self, match_id: int, conn=None) -> MatchResult | None:
        """Return the result recorded for ``match_id``, if any."""
        with self._cursor(conn) as cur:
            row = cur.execute(
                "SELECT * FROM match_results WHERE match_id = ?", (match_id,)
            ).fetchone()
        return _row_to_result(row) if row else None
