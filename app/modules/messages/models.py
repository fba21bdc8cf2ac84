# Supabase table: group_messages
# This file documents the expected database schema

"""
Expected Supabase table structure:

group_messages:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id, not null)
- sender_id: uuid (foreign key to user_profiles.id, not null)
- sender_name: text (not null) - username at send time
- sender_avatar_url: text (default: '')
- text: text (not null)
- created_at: timestamp (default: now())

Index: (group_id, created_at).
"""
