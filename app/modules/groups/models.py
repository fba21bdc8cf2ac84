# Supabase table: groups
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py and membership.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key, default: gen_random_uuid())
- name: text (not null)
- description: text (default: '')
- admin_id: uuid (foreign key to user_profiles.id, not null)
- members: uuid[] (not null) - always contains admin_id; authoritative
  membership, mirrored into user_profiles.groups
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Index: GIN on members (queried with `members @> '{<user_id>}'`).

Invites are not stored: see invites.py.
"""
