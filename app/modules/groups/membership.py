"""
Keeps groups.members and user_profiles.groups mirrored.

groups.members is the source of truth; user_profiles.groups is a projection of
it. Every operation writes the group row first and then brings the projection
in line with it. The writes are independent (there is no transaction), so each
step is set-based and safe to repeat: adding a reference that is present or
removing one that is absent is a no-op. Re-running a failed operation
converges to the consistent state.
"""
from supabase import Client
from app.core.errors import AlreadyMember, NotFound
from fastapi import HTTPException
from datetime import datetime, timezone
from typing import Iterable, List, Set
import logging

logger = logging.getLogger(__name__)


def _dedupe(ids: Iterable[str]) -> List[str]:
    """Drop empties and duplicates, keeping first-seen order"""
    return list(dict.fromkeys(i for i in ids if i))


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MembershipSynchronizer:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Group-level operations

    def create_group(self, name: str, admin_id: str, member_ids: Iterable[str], description: str = "") -> dict:
        """Create a group whose members are the admin plus the requested users"""
        members = _dedupe([admin_id, *member_ids])
        try:
            self.require_users(members)
            result = self.supabase.table("groups").insert({
                "name": name,
                "description": description or "",
                "admin_id": admin_id,
                "members": members,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create group")
            group = result.data[0]
            self._add_back_refs(group["id"], members)
            logger.info("Created group %s with %d member(s)", group["id"], len(members))
            return group
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating group: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def join(self, group: dict, user_id: str) -> dict:
        """Append a user admitted by invite; a second join is AlreadyMember"""
        members = group.get("members") or []
        if user_id in members:
            raise AlreadyMember()
        try:
            updated = self._write_members(group["id"], members + [user_id])
            self._add_back_refs(group["id"], [user_id])
            logger.info("User %s joined group %s", user_id, group["id"])
            return updated
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error joining group {group['id']}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def replace_members(self, group: dict, member_ids: Iterable[str]) -> dict:
        """Member set becomes {admin} plus member_ids; only changed users are rewritten"""
        members = _dedupe([group["admin_id"], *member_ids])
        try:
            self.require_users(members)
            updated = self._write_members(group["id"], members)
            added, removed = self._reconcile(group["id"], members)
            logger.info(
                "Replaced members of group %s: +%d -%d", group["id"], len(added), len(removed)
            )
            return updated
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error replacing members of group {group['id']}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def add_members(self, group: dict, member_ids: Iterable[str]) -> dict:
        """Set union with the current members; nobody is removed"""
        new_ids = _dedupe(member_ids)
        if not new_ids:
            return group
        try:
            self.require_users(new_ids)
            current = group.get("members") or []
            members = _dedupe([*current, *new_ids])
            updated = self._write_members(group["id"], members) if members != current else group
            self._add_back_refs(group["id"], new_ids)
            return updated
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding members to group {group['id']}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_group(self, group: dict) -> None:
        """Clear every back-reference, then drop the group row"""
        group_id = group["id"]
        try:
            holders = self._holders(group_id)
            self._remove_back_refs(group_id, _dedupe([*(group.get("members") or []), *holders]))
            self.supabase.table("groups")\
                .delete()\
                .eq("id", group_id)\
                .execute()
            logger.info("Deleted group %s", group_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting group {group_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    # Projection maintenance

    def _reconcile(self, group_id: str, members: List[str]):
        """Bring user_profiles.groups in line with the given member list"""
        holders = self._holders(group_id)
        removed = sorted(holders - set(members))
        self._remove_back_refs(group_id, removed)
        added = self._add_back_refs(group_id, members)
        return added, removed

    def _holders(self, group_id: str) -> Set[str]:
        """Users whose projection currently references the group"""
        result = self.supabase.table("user_profiles")\
            .select("id")\
            .contains("groups", [group_id])\
            .execute()
        return {row["id"] for row in result.data or []}

    def _add_back_refs(self, group_id: str, user_ids: List[str]) -> List[str]:
        changed = []
        for row in self._load_refs(user_ids):
            refs = row.get("groups") or []
            if group_id in refs:
                continue
            self._write_refs(row["id"], refs + [group_id])
            changed.append(row["id"])
        return changed

    def _remove_back_refs(self, group_id: str, user_ids: List[str]) -> List[str]:
        changed = []
        for row in self._load_refs(user_ids):
            refs = row.get("groups") or []
            if group_id not in refs:
                continue
            self._write_refs(row["id"], [g for g in refs if g != group_id])
            changed.append(row["id"])
        return changed

    def _load_refs(self, user_ids: List[str]) -> List[dict]:
        if not user_ids:
            return []
        result = self.supabase.table("user_profiles")\
            .select("id, groups")\
            .in_("id", list(user_ids))\
            .execute()
        return result.data or []

    def _write_refs(self, user_id: str, refs: List[str]) -> None:
        self.supabase.table("user_profiles")\
            .update({"groups": refs})\
            .eq("id", user_id)\
            .execute()

    def _write_members(self, group_id: str, members: List[str]) -> dict:
        result = self.supabase.table("groups")\
            .update({"members": members, "updated_at": _now()})\
            .eq("id", group_id)\
            .execute()
        if not result.data:
            raise NotFound("Group not found")
        return result.data[0]

    def require_users(self, user_ids: List[str]) -> None:
        """NotFound naming every id without a profile row"""
        if not user_ids:
            return
        result = self.supabase.table("user_profiles")\
            .select("id")\
            .in_("id", list(user_ids))\
            .execute()
        found = {row["id"] for row in result.data or []}
        missing = [u for u in user_ids if u not in found]
        if missing:
            raise NotFound(f"User not found: {', '.join(missing)}")
