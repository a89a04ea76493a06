"""
SQLite Database Repository - Tenant Data Persistence
====================================================

Stores users, businesses, their locations, collected reviews and review link
configurations. Every business-scoped query takes a business id so each
tenant only sees its own data.
"""

import sqlite3
import logging
from typing import List, Optional
from dataclasses import dataclass
from enum import Enum
from contextlib import contextmanager

logger = logging.getLogger(__name__)

DATABASE_FILE = "reviewuplift.db"


class UserRole(Enum):
    """Role of an account."""
    ADMIN = "admin"
    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"


class AccountStatus(Enum):
    """Lifecycle status shared by users and businesses."""
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"


class ReviewSource(Enum):
    """Where a review came from."""
    PRIVATE = "private"  # gated feedback form
    PUBLIC = "public"


REVIEW_FILTERS = ("All", "Above 3", "Below 3", "Replied", "Not Replied")


@dataclass
class User:
    """Account record (identity lives with the identity provider, keyed by uid)."""
    id: int
    uid: str
    email: str
    username: str
    role: str = "owner"
    status: str = "active"
    business_id: Optional[int] = None
    phone: str = ""
    phone_verified: bool = False
    last_login: str = ""
    created_at: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER.value


@dataclass
class Business:
    """Tenant record."""
    id: int
    owner_id: int
    name: str
    business_type: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    branch_count: int = 1
    description: str = ""
    status: str = "active"
    plan: str = "Trial"
    created_at: str = ""
    user_count: int = 0
    review_count: int = 0
    avg_rating: float = 0.0


@dataclass
class Review:
    """Collected review or private feedback."""
    id: int
    business_id: int
    name: str
    rating: int
    message: str
    email: str = ""
    phone: str = ""
    branch: str = ""
    source: str = "private"
    replied: bool = False
    reply_text: str = ""
    created_at: str = ""


@dataclass
class Location:
    """Branch of a business; private feedback names one of these."""
    id: int
    business_id: int
    name: str
    address: str
    is_active: bool = True
    created_at: str = ""


@dataclass
class Credential:
    """Password credential held by the local identity provider."""
    uid: str
    email: str
    password_hash: str
    email_verified: bool = False


class Database:
    """
    SQLite database for ReviewUplift.

    Usage:
        db = Database()
        db.init()

        business_id = db.create_business(owner_id=1, name="Doner Hut")
        db.add_review(business_id, name="Ali", rating=2, message="Cold food")
        reviews = db.get_reviews(business_id, filter_option="Below 3")
    """

    def __init__(self, db_path: str = DATABASE_FILE):
        self.db_path = str(db_path)

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init(self):
        """Initialize database tables."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS credentials (
                    uid TEXT PRIMARY KEY,
                    email TEXT UNIQUE NOT NULL,
                    password_hash TEXT NOT NULL,
                    email_verified INTEGER DEFAULT 0
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    uid TEXT UNIQUE NOT NULL,
                    email TEXT UNIQUE NOT NULL,
                    username TEXT UNIQUE NOT NULL,
                    role TEXT DEFAULT 'owner',
                    status TEXT DEFAULT 'active',
                    business_id INTEGER,
                    phone TEXT DEFAULT '',
                    phone_verified INTEGER DEFAULT 0,
                    last_login TEXT DEFAULT '',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS businesses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    business_type TEXT DEFAULT '',
                    contact_email TEXT DEFAULT '',
                    contact_phone TEXT DEFAULT '',
                    branch_count INTEGER DEFAULT 1,
                    description TEXT DEFAULT '',
                    status TEXT DEFAULT 'active',
                    plan TEXT DEFAULT 'Trial',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS reviews (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    business_id INTEGER NOT NULL REFERENCES businesses(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    email TEXT DEFAULT '',
                    phone TEXT DEFAULT '',
                    branch TEXT DEFAULT '',
                    rating INTEGER NOT NULL,
                    message TEXT DEFAULT '',
                    source TEXT DEFAULT 'private',
                    replied INTEGER DEFAULT 0,
                    reply_text TEXT DEFAULT '',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS locations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    business_id INTEGER NOT NULL REFERENCES businesses(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    address TEXT NOT NULL,
                    is_active INTEGER DEFAULT 1,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS link_configs (
                    business_id INTEGER PRIMARY KEY REFERENCES businesses(id) ON DELETE CASCADE,
                    token TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            logger.info(f"Database initialized: {self.db_path}")

    # ── Credentials (local identity provider) ──────────────────────

    def create_credential(self, uid: str, email: str, password_hash: str) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    "INSERT INTO credentials (uid, email, password_hash) VALUES (?, ?, ?)",
                    (uid, email, password_hash)
                )
                return True
        except sqlite3.IntegrityError:
            return False

    def get_credential_by_email(self, email: str) -> Optional[Credential]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM credentials WHERE email = ?", (email,)).fetchone()
            if not row:
                return None
            return Credential(
                uid=row["uid"],
                email=row["email"],
                password_hash=row["password_hash"],
                email_verified=bool(row["email_verified"]),
            )

    def update_credential(self, uid: str, **updates) -> bool:
        if not updates:
            return False

        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        values = list(updates.values()) + [uid]

        try:
            with self._get_connection() as conn:
                cursor = conn.execute(f"UPDATE credentials SET {set_clause} WHERE uid = ?", values)
                return cursor.rowcount > 0
        except sqlite3.IntegrityError:
            return False

    def delete_credential(self, uid: str):
        with self._get_connection() as conn:
            conn.execute("DELETE FROM credentials WHERE uid = ?", (uid,))

    # ── User CRUD ──────────────────────────────────────────────────

    def create_user(self, uid: str, email: str, username: str, role: str = "owner",
                    status: str = "active", business_id: Optional[int] = None) -> Optional[int]:
        """Create a new user. Returns None if email, username or uid is taken."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    """INSERT INTO users (uid, email, username, role, status, business_id)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (uid, email, username, role, status, business_id)
                )
                return cursor.lastrowid
        except sqlite3.IntegrityError:
            logger.warning(f"User {email} / {username} already exists")
            return None

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return self._row_to_user(row) if row else None

    def get_user_by_uid(self, uid: str) -> Optional[User]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE uid = ?", (uid,)).fetchone()
            return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
            return self._row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
            return self._row_to_user(row) if row else None

    def get_user_by_email_or_username(self, identifier: str) -> Optional[User]:
        """Get user by email or username (for login)."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ? OR username = ?",
                (identifier, identifier)
            ).fetchone()
            return self._row_to_user(row) if row else None

    def get_users(self, business_id: Optional[int] = None, search: str = "") -> List[User]:
        """List users, optionally for one business and/or matching a search term."""
        clauses, params = [], []
        if business_id is not None:
            clauses.append("u.business_id = ?")
            params.append(business_id)
        if search:
            like = f"%{search.lower()}%"
            clauses.append("(LOWER(u.username) LIKE ? OR LOWER(u.email) LIKE ? OR LOWER(COALESCE(b.name, '')) LIKE ?)")
            params.extend([like, like, like])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._get_connection() as conn:
            rows = conn.execute(
                f"""SELECT u.* FROM users u
                    LEFT JOIN businesses b ON b.id = u.business_id
                    {where} ORDER BY u.id DESC""",
                params
            ).fetchall()
            return [self._row_to_user(row) for row in rows]

    def update_user(self, user_id: int, **updates) -> bool:
        """Update user fields."""
        if not updates:
            return False

        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        values = list(updates.values()) + [user_id]

        with self._get_connection() as conn:
            cursor = conn.execute(f"UPDATE users SET {set_clause} WHERE id = ?", values)
            return cursor.rowcount > 0

    def set_user_status(self, user_id: int, status: AccountStatus) -> bool:
        return self.update_user(user_id, status=status.value)

    def touch_last_login(self, user_id: int):
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE id = ?", (user_id,)
            )

    def delete_user(self, user_id: int) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cursor.rowcount > 0

    def _row_to_user(self, row: sqlite3.Row) -> User:
        """Convert database row to User object."""
        return User(
            id=row["id"],
            uid=row["uid"],
            email=row["email"],
            username=row["username"],
            role=row["role"] or "owner",
            status=row["status"] or "active",
            business_id=row["business_id"],
            phone=row["phone"] or "",
            phone_verified=bool(row["phone_verified"]),
            last_login=row["last_login"] or "",
            created_at=row["created_at"] or ""
        )

    # ── Business CRUD ──────────────────────────────────────────────

    def create_business(self, owner_id: int, name: str, **details) -> int:
        """Create a business and attach its owner to it."""
        columns = ["owner_id", "name"] + list(details.keys())
        values = [owner_id, name] + list(details.values())
        placeholders = ", ".join("?" for _ in columns)

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"INSERT INTO businesses ({', '.join(columns)}) VALUES ({placeholders})",
                values
            )
            business_id = cursor.lastrowid
            conn.execute("UPDATE users SET business_id = ? WHERE id = ?", (business_id, owner_id))
            logger.info(f"Business {business_id} created for owner {owner_id}")
            return business_id

    def update_business(self, business_id: int, **updates) -> bool:
        if not updates:
            return False

        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        values = list(updates.values()) + [business_id]

        with self._get_connection() as conn:
            cursor = conn.execute(f"UPDATE businesses SET {set_clause} WHERE id = ?", values)
            return cursor.rowcount > 0

    def set_business_status(self, business_id: int, status: AccountStatus) -> bool:
        return self.update_business(business_id, status=status.value)

    def get_business(self, business_id: int) -> Optional[Business]:
        with self._get_connection() as conn:
            row = conn.execute(
                self._business_select("WHERE b.id = ?"), (business_id,)
            ).fetchone()
            return self._row_to_business(row) if row else None

    def get_business_by_owner(self, owner_id: int) -> Optional[Business]:
        with self._get_connection() as conn:
            row = conn.execute(
                self._business_select("WHERE b.owner_id = ?"), (owner_id,)
            ).fetchone()
            return self._row_to_business(row) if row else None

    def get_businesses(self, search: str = "") -> List[Business]:
        with self._get_connection() as conn:
            if search:
                like = f"%{search.lower()}%"
                rows = conn.execute(
                    self._business_select("WHERE LOWER(b.name) LIKE ? OR LOWER(b.business_type) LIKE ?"),
                    (like, like)
                ).fetchall()
            else:
                rows = conn.execute(self._business_select("")).fetchall()
            return [self._row_to_business(row) for row in rows]

    def delete_business(self, business_id: int) -> bool:
        """Delete a business with its reviews and link config; its users are detached."""
        with self._get_connection() as conn:
            conn.execute("UPDATE users SET business_id = NULL WHERE business_id = ?", (business_id,))
            cursor = conn.execute("DELETE FROM businesses WHERE id = ?", (business_id,))
            return cursor.rowcount > 0

    @staticmethod
    def _business_select(where: str) -> str:
        return f"""
            SELECT b.*,
                   (SELECT COUNT(*) FROM users u WHERE u.business_id = b.id) AS user_count,
                   (SELECT COUNT(*) FROM reviews r WHERE r.business_id = b.id) AS review_count,
                   (SELECT COALESCE(AVG(r.rating), 0) FROM reviews r WHERE r.business_id = b.id) AS avg_rating
            FROM businesses b {where} ORDER BY b.id DESC
        """

    def _row_to_business(self, row: sqlite3.Row) -> Business:
        return Business(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            business_type=row["business_type"] or "",
            contact_email=row["contact_email"] or "",
            contact_phone=row["contact_phone"] or "",
            branch_count=row["branch_count"] or 1,
            description=row["description"] or "",
            status=row["status"] or "active",
            plan=row["plan"] or "Trial",
            created_at=row["created_at"] or "",
            user_count=row["user_count"],
            review_count=row["review_count"],
            avg_rating=round(row["avg_rating"] or 0.0, 1),
        )

    # ── Reviews ────────────────────────────────────────────────────

    def add_review(self, business_id: int, name: str, rating: int, message: str,
                   email: str = "", phone: str = "", branch: str = "",
                   source: ReviewSource = ReviewSource.PRIVATE) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """INSERT INTO reviews (business_id, name, email, phone, branch, rating, message, source)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (business_id, name, email, phone, branch, rating, message, source.value)
            )
            return cursor.lastrowid

    def get_review(self, review_id: int) -> Optional[Review]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM reviews WHERE id = ?", (review_id,)).fetchone()
            return self._row_to_review(row) if row else None

    def get_reviews(self, business_id: int, search: str = "", filter_option: str = "All") -> List[Review]:
        """Reviews of one business, newest first, filtered like the reviews inbox."""
        clauses, params = ["business_id = ?"], [business_id]

        if search:
            like = f"%{search.lower()}%"
            clauses.append("(LOWER(name) LIKE ? OR LOWER(message) LIKE ?)")
            params.extend([like, like])

        filter_clause = {
            "Above 3": "rating >= 3",
            "Below 3": "rating < 3",
            "Replied": "replied = 1",
            "Not Replied": "replied = 0",
        }.get(filter_option)
        if filter_clause:
            clauses.append(filter_clause)

        with self._get_connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM reviews WHERE {' AND '.join(clauses)} ORDER BY id DESC",
                params
            ).fetchall()
            return [self._row_to_review(row) for row in rows]

    def toggle_replied(self, review_id: int) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE reviews SET replied = 1 - replied WHERE id = ?", (review_id,)
            )
            return cursor.rowcount > 0

    def reply_to_review(self, review_id: int, reply_text: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE reviews SET replied = 1, reply_text = ? WHERE id = ?",
                (reply_text, review_id)
            )
            return cursor.rowcount > 0

    def delete_review(self, review_id: int) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM reviews WHERE id = ?", (review_id,))
            return cursor.rowcount > 0

    def _row_to_review(self, row: sqlite3.Row) -> Review:
        return Review(
            id=row["id"],
            business_id=row["business_id"],
            name=row["name"],
            rating=row["rating"],
            message=row["message"] or "",
            email=row["email"] or "",
            phone=row["phone"] or "",
            branch=row["branch"] or "",
            source=row["source"] or "private",
            replied=bool(row["replied"]),
            reply_text=row["reply_text"] or "",
            created_at=row["created_at"] or ""
        )

    # ── Locations ──────────────────────────────────────────────────

    def add_location(self, business_id: int, name: str, address: str) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO locations (business_id, name, address) VALUES (?, ?, ?)",
                (business_id, name, address)
            )
            logger.info(f"Location {cursor.lastrowid} added for business {business_id}")
            return cursor.lastrowid

    def get_location(self, location_id: int) -> Optional[Location]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM locations WHERE id = ?", (location_id,)).fetchone()
            return self._row_to_location(row) if row else None

    def get_locations(self, business_id: int, search: str = "", active_only: bool = False) -> List[Location]:
        """Locations of one business in the order they were added."""
        clauses, params = ["business_id = ?"], [business_id]
        if search:
            like = f"%{search.lower()}%"
            clauses.append("(LOWER(name) LIKE ? OR LOWER(address) LIKE ?)")
            params.extend([like, like])
        if active_only:
            clauses.append("is_active = 1")

        with self._get_connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM locations WHERE {' AND '.join(clauses)} ORDER BY id",
                params
            ).fetchall()
            return [self._row_to_location(row) for row in rows]

    def update_location(self, location_id: int, name: str, address: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE locations SET name = ?, address = ? WHERE id = ?",
                (name, address, location_id)
            )
            return cursor.rowcount > 0

    def toggle_location(self, location_id: int) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE locations SET is_active = 1 - is_active WHERE id = ?", (location_id,)
            )
            return cursor.rowcount > 0

    def delete_location(self, location_id: int) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM locations WHERE id = ?", (location_id,))
            return cursor.rowcount > 0

    def _row_to_location(self, row: sqlite3.Row) -> Location:
        return Location(
            id=row["id"],
            business_id=row["business_id"],
            name=row["name"],
            address=row["address"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"] or ""
        )

    # ── Review link configuration ──────────────────────────────────

    def get_link_token(self, business_id: int) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT token FROM link_configs WHERE business_id = ?", (business_id,)
            ).fetchone()
            return row["token"] if row else None

    def save_link_token(self, business_id: int, token: str):
        with self._get_connection() as conn:
            conn.execute(
                """INSERT INTO link_configs (business_id, token) VALUES (?, ?)
                   ON CONFLICT(business_id) DO UPDATE
                   SET token = excluded.token, updated_at = CURRENT_TIMESTAMP""",
                (business_id, token)
            )

    # ── Stats ──────────────────────────────────────────────────────

    def get_business_stats(self, business_id: int) -> dict:
        """Review statistics for one business's dashboard."""
        with self._get_connection() as conn:
            row = conn.execute(
                """SELECT COUNT(*) AS total,
                          COALESCE(AVG(rating), 0) AS avg_rating,
                          SUM(CASE WHEN source = 'private' THEN 1 ELSE 0 END) AS private,
                          SUM(CASE WHEN replied = 1 THEN 1 ELSE 0 END) AS replied,
                          SUM(CASE WHEN rating >= 4 THEN 1 ELSE 0 END) AS positive
                   FROM reviews WHERE business_id = ?""",
                (business_id,)
            ).fetchone()

            total = row["total"]
            replied = row["replied"] or 0
            return {
                "total": total,
                "avg_rating": round(row["avg_rating"] or 0.0, 1),
                "private": row["private"] or 0,
                "positive": row["positive"] or 0,
                "replied": replied,
                "reply_rate": round(replied / total * 100, 1) if total > 0 else 0
            }

    def get_platform_stats(self) -> dict:
        """Totals for the admin dashboard."""
        with self._get_connection() as conn:
            businesses = conn.execute("SELECT COUNT(*) FROM businesses").fetchone()[0]
            users = conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
            reviews = conn.execute("SELECT COUNT(*) FROM reviews").fetchone()[0]
            avg = conn.execute("SELECT COALESCE(AVG(rating), 0) FROM reviews").fetchone()[0]
            active = conn.execute(
                "SELECT COUNT(*) FROM businesses WHERE status = 'active'"
            ).fetchone()[0]

            return {
                "businesses": businesses,
                "active_businesses": active,
                "users": users,
                "reviews": reviews,
                "avg_rating": round(avg or 0.0, 1),
            }


# Quick init helper
def init_database(db_path: str = DATABASE_FILE) -> Database:
    """Initialize database at ``db_path``."""
    db = Database(db_path)
    db.init()
    return db
