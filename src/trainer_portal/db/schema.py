"""Database schema for the trainer portal.

Timestamps are stored as SQLite UTC text ('YYYY-MM-DD HH:MM:SS').
"""

SCHEMA = """
-- Personal trainers; users are assigned to one
CREATE TABLE IF NOT EXISTS trainers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Clients and admins. The admin role is an explicit column.
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT UNIQUE,
    password_hash TEXT,
    first_name TEXT,
    last_name TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    is_paying INTEGER NOT NULL DEFAULT 1,
    is_admin INTEGER NOT NULL DEFAULT 0,
    trainer_id INTEGER REFERENCES trainers(id) ON DELETE SET NULL,
    last_login TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Video library; the file itself lives in object storage
CREATE TABLE IF NOT EXISTS videos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT,
    file_path TEXT NOT NULL,
    duration INTEGER,
    thumbnail_path TEXT,
    category TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Per-user video grants, one row per (user, video) pair
CREATE TABLE IF NOT EXISTS user_video_permissions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    video_id INTEGER NOT NULL REFERENCES videos(id) ON DELETE CASCADE,
    granted_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
    granted_at TEXT DEFAULT CURRENT_TIMESTAMP,
    expires_at TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    UNIQUE(user_id, video_id)
);

CREATE TABLE IF NOT EXISTS user_training_days (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    day_number INTEGER NOT NULL,
    day_name TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(user_id, day_number)
);

CREATE TABLE IF NOT EXISTS training_day_videos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    training_day_id INTEGER NOT NULL REFERENCES user_training_days(id) ON DELETE CASCADE,
    video_id INTEGER NOT NULL REFERENCES videos(id) ON DELETE CASCADE,
    order_index INTEGER NOT NULL DEFAULT 0,
    added_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
    added_at TEXT DEFAULT CURRENT_TIMESTAMP,
    is_active INTEGER NOT NULL DEFAULT 1,
    UNIQUE(training_day_id, video_id)
);

-- One PDF training plan per user, stored base64-encoded
CREATE TABLE IF NOT EXISTS user_pdf_files (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    original_name TEXT NOT NULL,
    file_data TEXT NOT NULL,
    file_size INTEGER NOT NULL,
    mime_type TEXT NOT NULL DEFAULT 'application/pdf',
    uploaded_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
    uploaded_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    duration_months INTEGER NOT NULL DEFAULT 2,
    duration_days INTEGER NOT NULL DEFAULT 0,
    expiration_date TEXT
);

-- One review per user
CREATE TABLE IF NOT EXISTS reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    rating INTEGER NOT NULL CHECK (rating >= 1 AND rating <= 5),
    title TEXT,
    comment TEXT NOT NULL,
    is_approved INTEGER NOT NULL DEFAULT 0,
    is_featured INTEGER NOT NULL DEFAULT 0,
    approved_at TEXT,
    approved_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Periodic client check-ins
CREATE TABLE IF NOT EXISTS user_feedbacks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    email TEXT NOT NULL,
    feedback_date TEXT NOT NULL DEFAULT (DATE('now')),
    energy_level TEXT NOT NULL CHECK (energy_level IN ('high', 'medium', 'low')),
    workouts_completed TEXT NOT NULL CHECK (workouts_completed IN ('all', 'almost_all', 'few_or_none')),
    meal_plan_followed TEXT NOT NULL CHECK (meal_plan_followed IN ('completely', 'mostly', 'sometimes', 'no')),
    sleep_quality TEXT NOT NULL CHECK (sleep_quality IN ('excellent', 'good', 'fair', 'poor')),
    physical_discomfort TEXT NOT NULL CHECK (physical_discomfort IN ('none', 'minor', 'significant')),
    discomfort_details TEXT,
    motivation_level TEXT NOT NULL CHECK (motivation_level IN ('very_high', 'good', 'medium', 'low')),
    weekly_highlights TEXT,
    current_weight REAL,
    pdf_change_date TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Last time an admin looked at the feedback inbox, optionally per trainer
CREATE TABLE IF NOT EXISTS admin_feedback_seen (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    admin_user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    trainer_id INTEGER NOT NULL DEFAULT 0,
    last_seen_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(admin_user_id, trainer_id)
);

CREATE TABLE IF NOT EXISTS access_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
    video_id INTEGER REFERENCES videos(id) ON DELETE CASCADE,
    ip_address TEXT,
    user_agent TEXT,
    access_time TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Indexes for the common lookups
CREATE INDEX IF NOT EXISTS idx_users_trainer ON users(trainer_id);
CREATE INDEX IF NOT EXISTS idx_permissions_user ON user_video_permissions(user_id, is_active);
CREATE INDEX IF NOT EXISTS idx_permissions_video ON user_video_permissions(video_id);
CREATE INDEX IF NOT EXISTS idx_training_days_user ON user_training_days(user_id, day_number);
CREATE INDEX IF NOT EXISTS idx_day_videos_day ON training_day_videos(training_day_id, order_index);
CREATE INDEX IF NOT EXISTS idx_day_videos_video ON training_day_videos(video_id);
CREATE INDEX IF NOT EXISTS idx_reviews_public ON reviews(is_approved, is_featured);
CREATE INDEX IF NOT EXISTS idx_feedbacks_user ON user_feedbacks(user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_feedbacks_created ON user_feedbacks(created_at);
CREATE INDEX IF NOT EXISTS idx_access_logs_user ON access_logs(user_id, access_time);
"""

DEFAULT_TRAINERS = (
    (1, "Joshua"),
    (2, "Denise"),
)

# Named in notifications when a client has no trainer assigned
DEFAULT_TRAINER_NAME = DEFAULT_TRAINERS[0][1]
