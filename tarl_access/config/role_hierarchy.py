"""
Role Hierarchy and Action Configuration
This config defines which roles may create which other roles, the actions that
can be granted per page, and the organizational scopes a user can be assigned to.
Used by the API, the seed script and the user creation flow.
"""

import re
from typing import Any, Iterable, List

# Who may create whom. Literal lookup, no inheritance between entries.
ROLE_HIERARCHY = {
    "admin": ["director", "partner", "coordinator", "collector", "intern"],
    "director": ["teacher", "coordinator", "collector"],
    "partner": ["teacher", "coordinator", "collector"],
    "teacher": [],
    "coordinator": [],
    "collector": [],
    "intern": [],
}

ROLE_DESCRIPTIONS = {
    "admin": "Full administrative access",
    "director": "Manages teachers and field staff for assigned schools",
    "partner": "Partner organization lead for assigned schools",
    "teacher": "Delivers classes and records observations",
    "coordinator": "Coordinates training programs",
    "collector": "Collects observation and assessment data",
    "intern": "Limited read access",
}

# Actions that can be granted on a page
AVAILABLE_ACTIONS = ["view", "create", "update", "delete", "export", "bulk_update"]

DEFAULT_PAGE_ACTIONS = {
    "schools": ["view", "create", "update", "delete", "export"],
    "users": ["view", "create", "update", "delete", "export"],
    "observations": ["view", "create", "update", "delete", "export"],
    "reports": ["view", "export"],
    "settings": ["view", "update"],
}

# Organizational scopes, and the table holding the target names for each
ASSIGNMENT_TYPES = ["zone", "province", "district", "school"]

ASSIGNMENT_TARGET_TABLES = {
    "zone": "zones",
    "province": "provinces",
    "district": "districts",
    "school": "schools",
}

# Roles that get a school assignment when created with a school
AUTO_ASSIGN_SCHOOL_ROLES = ["director", "partner"]

# Pages seeded on a fresh database
DEFAULT_PAGES = [
    {"page_name": "Dashboard", "page_path": "/dashboard"},
    {"page_name": "Schools", "page_path": "/schools"},
    {"page_name": "Users", "page_path": "/users"},
    {"page_name": "Observations", "page_path": "/observations"},
    {"page_name": "Training", "page_path": "/training"},
    {"page_name": "Reports", "page_path": "/reports"},
    {"page_name": "Analytics", "page_path": "/analytics"},
    {"page_name": "Settings", "page_path": "/settings"},
]


def get_creatable_roles(role: str) -> List[str]:
    """
    Returns the roles that `role` may assign when creating a user.
    Unknown roles get an empty list.
    """
    return list(ROLE_HIERARCHY.get(role, []))


def _role_name(candidate: Any) -> str:
    if isinstance(candidate, str):
        return candidate
    if isinstance(candidate, dict):
        return candidate.get("name", "")
    return getattr(candidate, "name", "")


def filter_roles_by_hierarchy(acting_role: str, roles: Iterable[Any]) -> List[Any]:
    """Keep the candidates (names, dicts or objects with `.name`) that acting_role may create"""
    allowed = set(get_creatable_roles(acting_role))
    return [role for role in roles if _role_name(role) in allowed]


def can_create_users(role: str) -> bool:
    return bool(ROLE_HIERARCHY.get(role))


def normalize_page_name(page_name: str) -> str:
    return re.sub(r"\s+", "_", page_name.strip().lower())


def get_default_actions_for_page(page_name: str) -> List[str]:
    return list(DEFAULT_PAGE_ACTIONS.get(normalize_page_name(page_name), ["view"]))
