"""
Database schema for coderoom.

This module defines the SQLite schema and handles versioning.
The schema is designed to:
- Keep exactly one row per canonical repository path
- Hold user tags as a many-to-many relation with the repositories
- Store a replaceable per-repository commit index for commit search
"""

import logging
import sqlite3

logger = logging.getLogger(__name__)

# Current schema version - increment when schema changes
# v1: Initial schema
CURRENT_VERSION = 1

SCHEMA_V1 = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS _schema_info (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

-- Indexed repositories, keyed by canonical path
CREATE TABLE IF NOT EXISTS repos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    path TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    default_branch TEXT,
    last_commit_ts INTEGER,     -- epoch seconds
    last_scan_ts INTEGER NOT NULL,
    readme_excerpt TEXT,
    origin_url TEXT,
    last_access_ts INTEGER      -- set by "open"
);

-- User tags
CREATE TABLE IF NOT EXISTS tags (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS repo_tags (
    repo_id INTEGER NOT NULL,
    tag_id INTEGER NOT NULL,
    PRIMARY KEY (repo_id, tag_id),
    FOREIGN KEY (repo_id) REFERENCES repos(id) ON DELETE CASCADE,
    FOREIGN KEY (tag_id) REFERENCES tags(id) ON DELETE CASCADE
);

-- Commit index: replaced wholesale per repository
CREATE TABLE IF NOT EXISTS branch_tips (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    repo_id INTEGER NOT NULL,
    kind TEXT NOT NULL,         -- 'local' or 'remote'
    name TEXT NOT NULL,
    refname TEXT NOT NULL,
    tip_time INTEGER,
    UNIQUE (repo_id, refname),
    FOREIGN KEY (repo_id) REFERENCES repos(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS commits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    repo_id INTEGER NOT NULL,
    refname TEXT NOT NULL,
    branch_kind TEXT NOT NULL,
    branch_name TEXT NOT NULL,
    oid TEXT NOT NULL,
    time INTEGER,
    author TEXT,
    email TEXT,
    summary TEXT,
    message TEXT,
    UNIQUE (repo_id, refname, oid),
    FOREIGN KEY (repo_id) REFERENCES repos(id) ON DELETE CASCADE
);

-- Indexes for fast queries
CREATE INDEX IF NOT EXISTS idx_repos_name ON repos(name);
CREATE INDEX IF NOT EXISTS idx_repos_access ON repos(last_access_ts);
CREATE INDEX IF NOT EXISTS idx_tags_name ON tags(name);
CREATE INDEX IF NOT EXISTS idx_repo_tags_tag ON repo_tags(tag_id);

CREATE INDEX IF NOT EXISTS idx_commits_repo_time ON commits(repo_id, time);
CREATE INDEX IF NOT EXISTS idx_commits_repo_ref_time ON commits(repo_id, refname, time);
CREATE INDEX IF NOT EXISTS idx_commits_branch_name ON commits(branch_name);
"""

# Drop order respects foreign keys
ALL_TABLES = ('commits', 'branch_tips', 'repo_tags', 'tags', 'repos', '_schema_info')


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from database."""
    try:
        cursor = conn.execute(
            "SELECT MAX(version) FROM _schema_info"
        )
        result = cursor.fetchone()
        return result[0] if result[0] is not None else 0
    except sqlite3.OperationalError:
        # Table doesn't exist yet
        return 0


def apply_schema(conn: sqlite3.Connection) -> None:
    """
    Apply schema to database.

    An older schema version is dropped and recreated. Repository rows and
    the commit index come back with the next scan; tags do not, so the
    rebuild is logged as a warning.
    """
    current = get_schema_version(conn)

    if current != 0 and current < CURRENT_VERSION:
        logger.warning(
            f"Schema version {current} -> {CURRENT_VERSION}, rebuilding index (tags are reset)"
        )
        conn.executescript(
            ''.join(f"DROP TABLE IF EXISTS {table};\n" for table in ALL_TABLES)
        )

    conn.executescript(SCHEMA_V1)
    conn.execute(
        "INSERT OR REPLACE INTO _schema_info (version, description) VALUES (?, ?)",
        (CURRENT_VERSION, "Initial schema")
    )

    conn.commit()


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Ensure database has current schema, rebuilding if necessary."""
    current = get_schema_version(conn)

    if current < CURRENT_VERSION:
        apply_schema(conn)
