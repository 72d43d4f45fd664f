# Supabase table: page_action_permissions
# This file documents the expected database schema

"""
Expected Supabase table structure:

page_action_permissions:
- id: bigint (primary key)
- page_id: bigint (not null, references pages.id)
- role: text (not null) - role name, see roles.name
- action_name: text (not null) - one of view, create, update, delete, export, bulk_update
- is_allowed: boolean (not null, default false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- unique constraint on (page_id, role, action_name)

Not linked to role_page_permissions: a role may hold action rows for a page it
cannot open. Reads reconcile the two (see service.py).
"""
