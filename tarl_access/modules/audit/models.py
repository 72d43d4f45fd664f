# Supabase table: permission_audit_log
# Append-only; rows are never updated or deleted by this service

"""
Expected Supabase table structure:

permission_audit_log:
- id: bigint (primary key)
- action_type: text (not null) - e.g. "page_permission_granted", "action_permission_revoked"
- description: text (not null)
- page_id: bigint (nullable, references pages.id)
- role_affected: text (nullable) - role name
- changed_by_user_id: uuid (nullable)
- changed_by: text (nullable) - email or name of the acting user
- created_at: timestamp (default: now())
"""
