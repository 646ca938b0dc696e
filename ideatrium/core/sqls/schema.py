"""
Database schema definitions
Contains all CREATE TABLE and CREATE INDEX statements

Every table carries the owning user_id; list-valued columns (tags,
preferences) are stored as JSON text.
"""

CREATE_USER_PROFILES_TABLE = """
    CREATE TABLE IF NOT EXISTS user_profiles (
        user_id TEXT PRIMARY KEY,
        display_name TEXT,
        preferences TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
"""

CREATE_IDEAS_TABLE = """
    CREATE TABLE IF NOT EXISTS ideas (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        tags TEXT NOT NULL DEFAULT '[]',
        impact INTEGER NOT NULL DEFAULT 3 CHECK (impact BETWEEN 1 AND 5),
        effort INTEGER NOT NULL DEFAULT 3 CHECK (effort BETWEEN 1 AND 5),
        quadrant TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'active',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
"""

CREATE_TASKS_TABLE = """
    CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        idea_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        status TEXT NOT NULL DEFAULT 'not_started',
        priority TEXT NOT NULL DEFAULT 'medium',
        due_date TEXT,
        estimated_hours REAL,
        actual_hours REAL,
        tags TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        completed_at TEXT
    )
"""

CREATE_SUBTASKS_TABLE = """
    CREATE TABLE IF NOT EXISTS subtasks (
        id TEXT PRIMARY KEY,
        task_id TEXT NOT NULL,
        title TEXT NOT NULL,
        completed BOOLEAN NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
"""

# Preset tag ids repeat across accounts, hence the composite key
CREATE_TAGS_TABLE = """
    CREATE TABLE IF NOT EXISTS tags (
        id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        color TEXT NOT NULL,
        category TEXT NOT NULL DEFAULT 'custom',
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (user_id, id)
    )
"""

CREATE_IDEAS_USER_CREATED_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_ideas_user_created
    ON ideas(user_id, created_at DESC)
"""

CREATE_TASKS_USER_CREATED_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_tasks_user_created
    ON tasks(user_id, created_at DESC)
"""

CREATE_TASKS_IDEA_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_tasks_idea_id
    ON tasks(idea_id)
"""

CREATE_SUBTASKS_TASK_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_subtasks_task_id
    ON subtasks(task_id)
"""

# All table creation statements in order
ALL_TABLES = [
    CREATE_USER_PROFILES_TABLE,
    CREATE_IDEAS_TABLE,
    CREATE_TASKS_TABLE,
    CREATE_SUBTASKS_TABLE,
    CREATE_TAGS_TABLE,
]

# All index creation statements
ALL_INDEXES = [
    CREATE_IDEAS_USER_CREATED_INDEX,
    CREATE_TASKS_USER_CREATED_INDEX,
    CREATE_TASKS_IDEA_INDEX,
    CREATE_SUBTASKS_TASK_INDEX,
]
