# Supabase table: notifications
# This file documents the expected database schema
# Rows are written only by fanout.py and updated only by "mark all read"

"""
Expected Supabase table structure:

notifications:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (foreign key to user_profiles.id, not null) - recipient
- type: text (not null) - one of: like, comment, group_invite, new_post
- post_id: uuid (foreign key to posts.id, nullable)
- group_id: uuid (foreign key to groups.id, nullable)
- from_user_id: uuid (foreign key to user_profiles.id, not null) - actor
- message: text (not null)
- read: boolean (default: false)
- created_at: timestamp (default: now())

Index: (user_id, created_at desc).
"""
from enum import Enum


class NotificationType(str, Enum):
    LIKE = "like"
    COMMENT = "comment"
    GROUP_INVITE = "group_invite"
    NEW_POST = "new_post"
