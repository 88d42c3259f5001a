# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - User login and session management
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (full_name goes to user_metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Resolve the identity behind a JWT token
- auth.sign_out() - Logout users

Signing up does not grant access: a trigger creates the profiles row with
approved = false and no user_roles row. See users/models.py and roles/models.py.
"""
