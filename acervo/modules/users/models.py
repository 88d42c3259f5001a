# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (not null) - synced from auth.users by a signup trigger
- full_name: text (nullable) - from user_metadata.full_name at signup
- approved: boolean (not null, default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

A profile row is created for every new auth user with approved = false.
Only an administrator flips approved to true; a missing row is read as
not approved.

Note: Authentication data (password, tokens) is stored in auth.users table
managed by Supabase Auth. This table only stores profile information.
"""
