"""
In-memory role x page access grid.

The matrix is built from the stored rows, edited (single cells, Grant All,
Revoke All) and then saved one role at a time. A role's saved row always
covers every page, so a save never leaves a partial subset behind.
"""

from typing import Any, Dict, Iterable, List


class PermissionMatrix:
    def __init__(self, roles: Iterable[Any], pages: Iterable[Any], rows: Iterable[dict] = ()):
        self.roles = {role.id: role for role in roles}
        self.pages = list(pages)
        self._page_ids = {page.id for page in self.pages}
        role_ids_by_name = {role.name: role.id for role in self.roles.values()}

        self._access: Dict[int, Dict[int, bool]] = {
            role_id: {page.id: False for page in self.pages} for role_id in self.roles
        }
        for row in rows:
            role_id = role_ids_by_name.get(row.get("role"))
            page_id = row.get("page_id")
            # Rows for deleted roles or pages are ignored
            if role_id is None or page_id not in self._page_ids:
                continue
            self._access[role_id][page_id] = bool(row.get("is_allowed"))

    def has_role(self, role_id: int) -> bool:
        return role_id in self.roles

    def has_page(self, page_id: int) -> bool:
        return page_id in self._page_ids

    def _row(self, role_id: int) -> Dict[int, bool]:
        if role_id not in self._access:
            raise KeyError(f"Unknown role {role_id}")
        return self._access[role_id]

    def can_access(self, role_id: int, page_id: int) -> bool:
        row = self._row(role_id)
        if page_id not in row:
            raise KeyError(f"Unknown page {page_id}")
        return row[page_id]

    def set_access(self, role_id: int, page_id: int, can_access: bool) -> None:
        row = self._row(role_id)
        if page_id not in row:
            raise KeyError(f"Unknown page {page_id}")
        row[page_id] = bool(can_access)

    def grant_all(self, role_id: int) -> None:
        row = self._row(role_id)
        for page_id in row:
            row[page_id] = True

    def revoke_all(self, role_id: int) -> None:
        row = self._row(role_id)
        for page_id in row:
            row[page_id] = False

    def granted_count(self, role_id: int) -> int:
        return sum(1 for allowed in self._row(role_id).values() if allowed)

    def snapshot(self, role_id: int) -> Dict[int, bool]:
        return dict(self._row(role_id))

    def role_entries(self, role_id: int) -> List[dict]:
        """One entry per page, in page order"""
        row = self._row(role_id)
        return [
            {
                "page_id": page.id,
                "page_name": page.page_name,
                "page_path": page.page_path,
                "can_access": row[page.id],
            }
            for page in self.pages
        ]

    def rows_for_role(self, role_id: int) -> List[dict]:
        """Storage rows for the whole role, ready for a single upsert"""
        role_name = self.roles[role_id].name if role_id in self.roles else None
        return [
            {"role": role_name, "page_id": page_id, "is_allowed": allowed}
            for page_id, allowed in self._row(role_id).items()
        ]

    def to_dict(self) -> List[dict]:
        return [
            {
                "role_id": role.id,
                "role_name": role.name,
                "permissions": {entry["page_id"]: entry for entry in self.role_entries(role.id)},
            }
            for role in sorted(self.roles.values(), key=lambda r: r.name)
        ]
