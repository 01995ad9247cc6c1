"""Editing dependency entries of a manifest while keeping its formatting."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence, Tuple

import tomlkit
from tomlkit.exceptions import TOMLKitError

from denylint.dependency import Dependency

_DEP_TYPES = ("dev-dependencies", "build-dependencies", "dependencies")


class ManifestError(Exception):
    """Raised when a manifest cannot be parsed or edited."""


def _is_table(item: Any) -> bool:
    return isinstance(item, Mapping)


def _merge_dependencies(table: Any, key: str, new: Dependency) -> None:
    old = table[key]
    new_toml = new.to_toml()[1]

    if isinstance(old, str) or (_is_table(old) and len(old) == 1):
        # The old entry only held a version, git or path: safe to overwrite.
        table[key] = new_toml
    elif _is_table(old):
        for field in ("version", "path", "git"):
            if field in old:
                del old[field]
        if isinstance(new_toml, str):
            old["version"] = new_toml
        else:
            for k, v in new_toml.unwrap().items():
                old[k] = v
    else:
        raise ManifestError(f"invalid dependency entry for '{key}'")


@dataclass
class Manifest:
    """A parsed manifest document."""

    doc: tomlkit.TOMLDocument

    @classmethod
    def parse(cls, text: str) -> "Manifest":
        try:
            return cls(tomlkit.parse(text))
        except TOMLKitError as exc:
            raise ManifestError(str(exc)) from exc

    def dep_sections(self) -> List[Tuple[List[str], Any]]:
        """Every dependency table with its path, including target-specific ones."""
        sections: List[Tuple[List[str], Any]] = []
        targets = self.doc.get("target")
        for dep_type in _DEP_TYPES:
            table = self.doc.get(dep_type)
            if _is_table(table):
                sections.append(([dep_type], table))
            if _is_table(targets):
                for target_name, target_table in targets.items():
                    if not _is_table(target_table):
                        continue
                    dep_table = target_table.get(dep_type)
                    if _is_table(dep_table):
                        sections.append((["target", target_name, dep_type], dep_table))
        return sections

    def get_table(self, table_path: Sequence[str]) -> Any:
        """Descend to the table at ``table_path``, creating missing tables."""
        current: Any = self.doc
        for segment in table_path:
            if segment not in current:
                current[segment] = tomlkit.table()
            value = current[segment]
            if not _is_table(value):
                raise ManifestError(f"Unable to find '{segment}'")
            current = value
        return current

    def update_table_named_entry(
        self, table_path: Sequence[str], item_name: str, dep: Dependency
    ) -> None:
        """Merge ``dep`` into an existing entry; entries that do not exist are left alone."""
        table = self.get_table(table_path)
        if item_name in table:
            _merge_dependencies(table, item_name, dep)

    def upgrade(self, deps: Iterable[Dependency]) -> None:
        """Update every entry whose package name matches one of ``deps``."""
        deps = list(deps)
        for table_path, table in self.dep_sections():
            for name, item in list(table.items()):
                dep_name = name
                if _is_table(item):
                    package = item.get("package")
                    if isinstance(package, str):
                        dep_name = package
                match = next((d for d in deps if d.name == dep_name), None)
                if match is not None:
                    self.update_table_named_entry(table_path, name, match)

    def dumps(self) -> str:
        return tomlkit.dumps(self.doc)