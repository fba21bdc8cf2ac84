# Supabase table: user_profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Identity is asserted by Firebase phone auth; firebase_uid maps it to a profile row

"""
Expected Supabase table structure:

user_profiles:
- id: uuid (primary key, default: gen_random_uuid())
- firebase_uid: text (unique, not null) - identity-mapping key
- username: text (unique, not null)
- phone_number: text (unique, not null)
- dob: date (nullable)
- bio: text (default: '')
- profile_picture: text (default: '')
- fcm_token: text (nullable) - push-delivery token
- groups: uuid[] (default: '{}') - back-reference to groups.members,
  written only by app.modules.groups.membership
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Index: GIN on groups (queried with `groups @> '{<group_id>}'`).
"""
