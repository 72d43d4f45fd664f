# Supabase table: pages
# Seeded by scripts/seed_access_control.py, rarely changed afterwards

"""
Expected Supabase table structure:

pages:
- id: bigint (primary key)
- page_name: text (not null, unique) - e.g., "Schools"
- page_path: text (not null, unique) - e.g., "/schools"
- created_at: timestamp (default: now())
"""
