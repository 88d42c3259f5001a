# Supabase table: user_roles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

user_roles:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null, unique)
- role: text (not null) - one of "admin", "user", "read_only"
- created_at: timestamp (default: now())

At most one row per user. A user without a row is unassigned and holds no
capabilities; nothing infers a default role from a missing row.

The capability table per role is static (acervo.config.permissions_config)
and is not stored in the database.

Row-level security is expected to allow:
- select of a user's own row to that user
- select/insert/update/delete of any row to users whose own role is "admin"
"""
