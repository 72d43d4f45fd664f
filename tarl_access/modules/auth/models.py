# Supabase Auth
# This module uses Supabase's built-in authentication system.
# Users are created by other users through the hierarchical user flow
# (see modules/users), never by self-registration.

"""
Supabase Auth provides:
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users
- auth.admin.create_user() - Create users (service role key only)

The acting user's role is not stored in the JWT; it is read from
user_profiles.role on every request (see core/dependencies.py).
"""
