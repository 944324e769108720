"""Data classes shared by the registrar and the stores."""

from attrs import frozen

__all__ = ["GuardedKey"]


@frozen
class GuardedKey:
    """Identity of a permission or role: its name within a guard.

    Attributes:
        name: The record name (e.g., 'edit-articles').
        guard_name: The guard the record belongs to (e.g., 'web').

    Examples:
        >>> key = GuardedKey(name="edit-articles", guard_name="web")
        >>> key == GuardedKey.for_record(permission)
        True
    """

    name: str
    guard_name: str

    @classmethod
    def for_record(cls, record) -> "GuardedKey":
        """Build the key of a Permission or Role instance.

        Args:
            record: Any object with ``name`` and ``guard_name`` attributes.

        Returns:
            GuardedKey: The key identifying ``record``.
        """
        return cls(name=record.name, guard_name=record.guard_name)

    def __str__(self):
        return f"{self.name} ({self.guard_name})"
