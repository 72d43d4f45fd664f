# Supabase table: role_page_permissions
# This file documents the expected database schema

"""
Expected Supabase table structure:

role_page_permissions:
- id: bigint (primary key)
- role: text (not null) - role name, see roles.name
- page_id: bigint (not null, references pages.id)
- is_allowed: boolean (not null, default false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- unique constraint on (role, page_id)

A missing row means no access. Saving a role writes one row per page.
"""
