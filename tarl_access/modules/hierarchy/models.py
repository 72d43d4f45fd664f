# Supabase tables: user_hierarchy_assignments, zones, provinces, districts, schools
# This file documents the expected database schema

"""
Expected Supabase table structure:

user_hierarchy_assignments:
- id: bigint (primary key)
- user_id: uuid (not null, references user_profiles.id)
- assignment_type: text (not null) - zone | province | district | school
- assignment_id: bigint (not null) - id in the table matching assignment_type
- assigned_by: uuid (nullable)
- is_active: boolean (not null, default true)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- unique constraint on (user_id, assignment_type, assignment_id)

zones / provinces / districts / schools:
- id: bigint (primary key)
- name: text (not null)

Removing an assignment flips is_active to false; assigning it again flips it
back. Assignments are independent: a school assignment does not have to lie
inside an assigned district.
"""
