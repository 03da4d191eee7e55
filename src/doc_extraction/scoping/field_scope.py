"""Folder scoping for extraction fields.

This module decides which extraction fields apply to a folder context.
A field without folder associations is global and applies to every
folder and to documents at the project root. A field with associations
applies only to those folders.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Sequence

from ..exceptions import InvalidRequestError
from ..models import FieldDefinition

__all__ = ["ROOT", "FolderContext", "FieldScope", "ScopedField", "FieldScopeResolver"]

FolderContext = Optional[str]

# Documents without a folder live at the project root.
ROOT: FolderContext = None


@dataclass(frozen=True)
class FieldScope:
    """Folders an extraction field is restricted to.

    An empty ``folder_ids`` set is the global scope. Build instances with
    :meth:`global_scope`, :meth:`scoped_to` or :meth:`from_folder_ids`.
    """
    folder_ids: FrozenSet[str] = frozenset()

    @classmethod
    def global_scope(cls) -> "FieldScope":
        return cls()

    @classmethod
    def scoped_to(cls, folder_ids: Iterable[str]) -> "FieldScope":
        ids = frozenset(folder_ids)
        if not ids:
            raise ValueError("A scoped field needs at least one folder")
        return cls(ids)

    @classmethod
    def from_folder_ids(cls, folder_ids: Iterable[str]) -> "FieldScope":
        """Build the scope from stored join rows; no rows means global."""
        return cls(frozenset(folder_ids))

    @property
    def is_global(self) -> bool:
        return not self.folder_ids

    def applies_to(self, context: FolderContext) -> bool:
        if self.is_global:
            return True
        return context is not ROOT and context in self.folder_ids


@dataclass(frozen=True)
class ScopedField:
    """An extraction field together with its resolved folder scope."""
    field: FieldDefinition
    scope: FieldScope

    @property
    def id(self) -> str:
        return self.field.id

    @property
    def name(self) -> str:
        return self.field.name


class FieldScopeResolver:
    """Filters a project's extraction fields down to a folder context.

    All methods are pure and preserve the order of the fields they are
    given, which the persistence layer sorts by name.
    """

    @staticmethod
    def is_applicable(scoped_field: ScopedField, context: FolderContext) -> bool:
        """Return True when the field applies to ``context``.

        Args:
            scoped_field: Field with its resolved scope
            context: Folder id, or ``ROOT`` for documents outside any folder
        """
        return scoped_field.scope.applies_to(context)

    @staticmethod
    def resolve_applicable(fields: Sequence[ScopedField],
                           context: FolderContext) -> List[ScopedField]:
        """Return the fields applicable to ``context`` in their given order.

        An empty input yields an empty list; callers decide how to
        present "nothing to extract".
        """
        return [f for f in fields if f.scope.applies_to(context)]

    @staticmethod
    def validate_selection(fields: Sequence[ScopedField], context: FolderContext,
                           selected_ids: Iterable[str]) -> List[ScopedField]:
        """Check a caller's field selection against a folder context.

        Duplicate ids are collapsed. The returned fields keep the order
        of ``fields``.

        Args:
            fields: All fields of the project with their scopes
            context: Folder id, or ``ROOT``
            selected_ids: Field ids chosen by the caller

        Returns:
            The selected fields

        Raises:
            InvalidRequestError: If the selection is empty or names a field
                that is unknown or not applicable to ``context``
        """
        selected = set(selected_ids)
        if not selected:
            raise InvalidRequestError("Select at least one field to extract")

        applicable = FieldScopeResolver.resolve_applicable(fields, context)
        applicable_ids = {f.id for f in applicable}
        rejected = selected - applicable_ids
        if rejected:
            raise InvalidRequestError(
                f"Fields not applicable to this folder: {', '.join(sorted(rejected))}"
            )
        return [f for f in applicable if f.id in selected]
