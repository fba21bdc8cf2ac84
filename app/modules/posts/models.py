# Supabase table: posts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

posts:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (foreign key to user_profiles.id, not null) - author
- group_id: uuid (foreign key to groups.id, not null)
- caption: text (default: '')
- media_url: text (not null) - public URL returned by the media bucket
- media_type: text (not null) - image | video
- likes: uuid[] (default: '{}') - each user at most once
- comments: jsonb (default: '[]') - append-only list of
  {id, user_id, text, created_at}
- created_at: timestamp (default: now())

Likes and comments are changed in place by these functions (called with
supabase.rpc) so concurrent requests never overwrite each other's arrays:

create or replace function toggle_post_like(p_post_id uuid, p_user_id uuid)
returns setof posts language sql as $$
  update posts
     set likes = case when p_user_id = any(likes)
                      then array_remove(likes, p_user_id)
                      else array_append(likes, p_user_id) end
   where id = p_post_id
  returning *;
$$;

create or replace function append_post_comment(p_post_id uuid, p_comment jsonb)
returns setof posts language sql as $$
  update posts
     set comments = coalesce(comments, '[]'::jsonb) || jsonb_build_array(p_comment)
   where id = p_post_id
  returning *;
$$;
"""
from enum import Enum

TOGGLE_LIKE_FUNCTION = "toggle_post_like"
APPEND_COMMENT_FUNCTION = "append_post_comment"


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
