"""
Database query SQL statements
Contains all SELECT, INSERT, UPDATE, DELETE statements

All statements are scoped by user_id; subtasks are scoped through their task.
Statements taking an id list contain a single `{placeholders}` slot that the
caller fills with the right number of `?` markers.
"""

# User profile queries
INSERT_USER_PROFILE = """
    INSERT OR IGNORE INTO user_profiles (user_id, display_name, preferences, created_at, updated_at)
    VALUES (?, ?, ?, ?, ?)
"""

SELECT_USER_PROFILE = """
    SELECT * FROM user_profiles
    WHERE user_id = ?
"""

# Ideas queries
INSERT_IDEA = """
    INSERT INTO ideas (
        id, user_id, title, description, tags, impact, effort,
        quadrant, status, created_at, updated_at
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

SELECT_IDEAS = """
    SELECT * FROM ideas
    WHERE user_id = ?
    ORDER BY created_at DESC, rowid DESC
"""

SELECT_IDEA_BY_ID = """
    SELECT * FROM ideas
    WHERE user_id = ? AND id = ?
"""

UPDATE_IDEA = """
    UPDATE ideas
    SET title = ?, description = ?, tags = ?, impact = ?, effort = ?,
        quadrant = ?, status = ?, updated_at = ?
    WHERE user_id = ? AND id = ?
"""

DELETE_IDEAS = """
    DELETE FROM ideas
    WHERE user_id = ? AND id IN ({placeholders})
"""

# Tasks queries
INSERT_TASK = """
    INSERT INTO tasks (
        id, user_id, idea_id, title, description, status, priority, due_date,
        estimated_hours, actual_hours, tags, created_at, updated_at, completed_at
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

SELECT_TASKS = """
    SELECT * FROM tasks
    WHERE user_id = ?
    ORDER BY created_at DESC, rowid DESC
"""

SELECT_TASK_BY_ID = """
    SELECT * FROM tasks
    WHERE user_id = ? AND id = ?
"""

SELECT_TASK_IDS_BY_IDEAS = """
    SELECT id FROM tasks
    WHERE user_id = ? AND idea_id IN ({placeholders})
"""

UPDATE_TASK = """
    UPDATE tasks
    SET title = ?, description = ?, status = ?, priority = ?, due_date = ?,
        estimated_hours = ?, actual_hours = ?, tags = ?, updated_at = ?,
        completed_at = ?
    WHERE user_id = ? AND id = ?
"""

DELETE_TASKS = """
    DELETE FROM tasks
    WHERE user_id = ? AND id IN ({placeholders})
"""

# Subtasks queries
INSERT_SUBTASK = """
    INSERT INTO subtasks (id, task_id, title, completed, created_at)
    SELECT ?, id, ?, ?, ? FROM tasks
    WHERE user_id = ? AND id = ?
"""

SELECT_SUBTASKS_BY_USER = """
    SELECT s.* FROM subtasks s
    JOIN tasks t ON t.id = s.task_id
    WHERE t.user_id = ?
    ORDER BY s.created_at ASC, s.rowid ASC
"""

SELECT_SUBTASKS_BY_TASK = """
    SELECT s.* FROM subtasks s
    JOIN tasks t ON t.id = s.task_id
    WHERE t.user_id = ? AND s.task_id = ?
    ORDER BY s.created_at ASC, s.rowid ASC
"""

UPDATE_SUBTASK = """
    UPDATE subtasks
    SET title = ?, completed = ?
    WHERE id = ? AND task_id IN (
        SELECT id FROM tasks WHERE user_id = ? AND id = ?
    )
"""

DELETE_SUBTASK = """
    DELETE FROM subtasks
    WHERE id = ? AND task_id IN (
        SELECT id FROM tasks WHERE user_id = ? AND id = ?
    )
"""

DELETE_SUBTASKS_BY_TASKS = """
    DELETE FROM subtasks
    WHERE task_id IN (
        SELECT id FROM tasks WHERE user_id = ? AND id IN ({placeholders})
    )
"""

# Tags queries
INSERT_TAG = """
    INSERT OR IGNORE INTO tags (id, user_id, name, color, category)
    VALUES (?, ?, ?, ?, ?)
"""

SELECT_TAGS = """
    SELECT * FROM tags
    WHERE user_id = ?
    ORDER BY category DESC, created_at ASC, rowid ASC
"""

DELETE_TAG = """
    DELETE FROM tags
    WHERE user_id = ? AND id = ?
"""
