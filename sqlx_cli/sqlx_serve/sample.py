"""Demo database synthesis using the native sqlite3 module."""

from __future__ import annotations

import sqlite3
import uuid

SAMPLE_ORIGINAL_NAME = "sample_database.db"

SAMPLE_SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT UNIQUE NOT NULL,
    age INTEGER,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    content TEXT,
    user_id INTEGER,
    published BOOLEAN DEFAULT 0,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(id)
);

CREATE TABLE categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    description TEXT
);
"""

SAMPLE_USERS = [
    ("John Doe", "john@example.com", 30),
    ("Jane Smith", "jane@example.com", 25),
    ("Bob Johnson", "bob@example.com", 35),
]

SAMPLE_POSTS = [
    ("Getting Started with SQLite", "This is a beginner guide to SQLite...", 1, 1),
    ("Advanced SQL Queries", "Learn about complex joins and subqueries...", 2, 1),
    ("Database Design Principles", "Best practices for designing databases...", 1, 0),
]

SAMPLE_CATEGORIES = [
    ("Technology", "Posts about technology and programming"),
    ("Tutorials", "Step-by-step guides and tutorials"),
    ("Tips", "Helpful tips and tricks"),
]


def sample_storage_key() -> str:
    return f"sample_{uuid.uuid4()}.db"


def build_sample_database() -> bytes:
    """Create the demo tables in memory and return the serialized image."""
    connection = sqlite3.connect(":memory:")
    try:
        connection.executescript(SAMPLE_SCHEMA)
        connection.executemany("INSERT INTO users (name, email, age) VALUES (?, ?, ?)", SAMPLE_USERS)
        connection.executemany(
            "INSERT INTO posts (title, content, user_id, published) VALUES (?, ?, ?, ?)",
            SAMPLE_POSTS,
        )
        connection.executemany(
            "INSERT INTO categories (name, description) VALUES (?, ?)", SAMPLE_CATEGORIES
        )
        connection.commit()
        return bytes(connection.serialize())
    finally:
        connection.close()
