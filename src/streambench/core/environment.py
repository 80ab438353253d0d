"""
Run environment shared by the stages and their collaborators.

Each stage binds its own configuration values here. A value is written
once, by its owner, and only read afterwards. Collaborators receive the
whole accumulated mapping as environment variables.
"""

from collections.abc import Mapping
from typing import Dict, Iterator


class RunEnvironment(Mapping):
    """Write-once mapping of configuration names to string values."""

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._owners: Dict[str, str] = {}

    def bind(self, key: str, value: str, owner: str) -> None:
        """
        Bind a value.

        Args:
            key: Environment variable name
            value: Value to bind (converted to str)
            owner: Who binds it, e.g. "base" or a stage letter

        Raises:
            ValueError: If the key is already bound
        """
        if key in self._values:
            raise ValueError(
                f"{key} is already bound by {self._owners[key]}; {owner} cannot rebind it"
            )
        self._values[key] = str(value)
        self._owners[key] = owner

    def bind_all(self, values: Mapping[str, str], owner: str) -> None:
        for key, value in values.items():
            self.bind(key, value, owner)

    def owned_by(self, owner: str) -> Dict[str, str]:
        """Return the values bound by one owner."""
        return {key: self._values[key] for key, who in self._owners.items() if who == owner}

    def owner_of(self, key: str) -> str:
        return self._owners[key]

    def to_dict(self) -> Dict[str, str]:
        return dict(self._values)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)
