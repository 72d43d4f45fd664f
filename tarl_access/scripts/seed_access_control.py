"""
Seed Roles, Pages and Admin Permissions Script
This script populates the roles, pages, role_page_permissions and
page_action_permissions tables from config/role_hierarchy.py.
Safe to run repeatedly: existing rows are updated, never duplicated.

    python -m tarl_access.scripts.seed_access_control
"""

import sys
import logging

from tarl_access.config.role_hierarchy import (
    ROLE_HIERARCHY, ROLE_DESCRIPTIONS, DEFAULT_PAGES, get_default_actions_for_page
)
from tarl_access.config.settings import settings
from tarl_access.database.supabase_client import SupabaseClient
from supabase import Client

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_roles(supabase: Client) -> int:
    """Seed every role named in the hierarchy"""
    logger.info("Seeding roles...")
    created_count = 0
    updated_count = 0

    for name in ROLE_HIERARCHY:
        try:
            existing = supabase.table("roles")\
                .select("id")\
                .eq("name", name)\
                .execute()

            if existing.data:
                supabase.table("roles")\
                    .update({"description": ROLE_DESCRIPTIONS.get(name)})\
                    .eq("name", name)\
                    .execute()
                updated_count += 1
                logger.debug(f"Updated role: {name}")
            else:
                supabase.table("roles").insert({
                    "name": name,
                    "description": ROLE_DESCRIPTIONS.get(name)
                }).execute()
                created_count += 1
                logger.debug(f"Created role: {name}")
        except Exception as e:
            logger.error(f"Error processing role {name}: {e}")

    logger.info(f"Roles seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def seed_pages(supabase: Client) -> list:
    """Seed the default pages; returns the stored page rows"""
    logger.info("Seeding pages...")
    pages = []

    for page in DEFAULT_PAGES:
        try:
            existing = supabase.table("pages")\
                .select("*")\
                .eq("page_name", page["page_name"])\
                .execute()

            if existing.data:
                pages.append(existing.data[0])
                continue
            result = supabase.table("pages").insert(page).execute()
            pages.append(result.data[0])
            logger.debug(f"Created page: {page['page_name']}")
        except Exception as e:
            logger.error(f"Error processing page {page['page_name']}: {e}")

    logger.info(f"Pages seeded: {len(pages)} present")
    return pages


def seed_admin_permissions(supabase: Client, pages: list) -> int:
    """Give the admin role every page and the default actions of every page"""
    if not pages:
        logger.warning("No pages to grant")
        return 0
    admin = settings.admin_role

    try:
        supabase.table("role_page_permissions").upsert(
            [{"role": admin, "page_id": page["id"], "is_allowed": True} for page in pages],
            on_conflict="role,page_id"
        ).execute()

        action_rows = [
            {"page_id": page["id"], "role": admin, "action_name": action, "is_allowed": True}
            for page in pages
            for action in get_default_actions_for_page(page["page_name"])
        ]
        supabase.table("page_action_permissions").upsert(
            action_rows, on_conflict="page_id,role,action_name"
        ).execute()
    except Exception as e:
        logger.error(f"Error granting admin permissions: {e}")
        return 0

    logger.info(f"Granted {admin} {len(pages)} pages and {len(action_rows)} actions")
    return len(action_rows)


def main():
    """Main function to seed roles, pages and admin permissions"""
    try:
        supabase = SupabaseClient.get_service_client()

        logger.info("Starting access control seeding...")
        role_count = seed_roles(supabase)
        pages = seed_pages(supabase)
        action_count = seed_admin_permissions(supabase, pages)

        logger.info("Seeding completed successfully!")
        logger.info(f"Total: {role_count} roles, {len(pages)} pages, {action_count} admin actions processed")

    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
