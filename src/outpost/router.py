"""Entity lookup across named repositories.

A reference is either a bare identifier (``"abc123"``) or a handle-qualified
one (``"entry::abc123"``). :class:`DataRepository` routes qualified
references straight to the repository registered under the handle and tries
every repository in registration order for bare ones.

Example::

    router = DataRepository()
    router.set_repository("entry", entries).set_repository("user", users)

    router.find("user::42")    # users.find("42")
    router.find("42")          # entries.find("42") or users.find("42")
    router.find("asset::42")   # None -- no "asset" repository
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

SEPARATOR = "::"


class Repository(Protocol):
    """Anything that can look an entity up by id."""

    def find(self, id: str) -> Optional[Any]: ...


class DataRepository:
    """Dispatch references to registered repositories.

    Args:
        repositories: Optional initial ``handle -> repository`` mapping. Its
            iteration order becomes the search order for bare references.
    """

    def __init__(self, repositories: Optional[dict[str, Repository]] = None) -> None:
        self._repositories: dict[str, Repository] = dict(repositories or {})

    @property
    def handles(self) -> list[str]:
        """Registered handles in search order."""
        return list(self._repositories)

    def set_repository(self, handle: str, repository: Repository) -> DataRepository:
        """Register *repository* under *handle* and return ``self``.

        Replacing an existing handle keeps its position in the search order.
        """
        self._repositories[handle] = repository
        return self

    def repository(self, handle: str) -> Optional[Repository]:
        return self._repositories.get(handle)

    def find(self, reference: str) -> Optional[Any]:
        """Resolve *reference* to an entity, or ``None`` if nothing matches."""
        handle, id = split_reference(reference)

        if handle is None:
            return self._attempt_all(id)

        repository = self._repositories.get(handle)
        if repository is None:
            return None
        return repository.find(id)

    def _attempt_all(self, id: str) -> Optional[Any]:
        for repository in self._repositories.values():
            result = repository.find(id)
            if result is not None:
                return result
        return None


def split_reference(reference: str) -> tuple[Optional[str], str]:
    """Split ``"handle::id"`` into ``("handle", "id")``.

    Only the first separator counts, so ids may contain ``::`` themselves.
    A bare reference returns ``(None, reference)``.
    """
    if SEPARATOR not in reference:
        return None, reference
    handle, id = reference.split(SEPARATOR, 1)
    return handle, id
