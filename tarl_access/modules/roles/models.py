# Supabase tables: roles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

roles:
- id: bigint (primary key)
- name: text (not null, unique) - e.g., "admin", "director", "teacher"
- description: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Role rank is not stored. Which role may create which is the static table in
config/role_hierarchy.py. Permission tables reference roles by name, not id.
"""
