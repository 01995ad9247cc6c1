"""Description of a single manifest dependency and its TOML form."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple, Union

import tomlkit
from tomlkit.items import InlineTable


class GitSpec(enum.Enum):
    """Which reference of a git repository a dependency points at."""

    REV = "rev"
    TAG = "tag"
    BRANCH = "branch"


@dataclass(frozen=True)
class _VersionSource:
    version: Optional[str] = None
    path: Optional[str] = None
    registry: Optional[str] = None


@dataclass(frozen=True)
class _GitSource:
    repo: str
    spec: Optional[Tuple[GitSpec, str]] = None


@dataclass(frozen=True)
class Dependency:
    """A dependency as written in a manifest.

    The ``with_*`` methods return modified copies.
    """

    name: str = ""
    optional: bool = False
    features: Optional[Tuple[str, ...]] = None
    default_features: bool = True
    source: Union[_VersionSource, _GitSource] = _VersionSource()
    rename: Optional[str] = None

    def with_version(self, version: str) -> "Dependency":
        plus = version.find("+")
        if plus != -1:
            version = version[: len(version) - plus - 1]
        if isinstance(self.source, _VersionSource):
            path, registry = self.source.path, self.source.registry
        else:
            path, registry = None, None
        return replace(self, source=_VersionSource(version, path, registry))

    def with_git(self, repo: str, spec: Optional[Tuple[GitSpec, str]] = None) -> "Dependency":
        return replace(self, source=_GitSource(repo, spec))

    def with_path(self, path: str) -> "Dependency":
        return replace(
            self,
            source=_VersionSource(self.version(), path.replace("\\", "/"), None),
        )

    def with_optional(self, optional: bool) -> "Dependency":
        return replace(self, optional=optional)

    def with_features(self, features: Optional[Iterable[str]]) -> "Dependency":
        """Set features, splitting each entry on spaces and dropping blanks."""
        if features is None:
            return replace(self, features=None)
        split = tuple(part for entry in features for part in entry.split(" ") if part)
        return replace(self, features=split)

    def with_default_features(self, default_features: bool) -> "Dependency":
        return replace(self, default_features=default_features)

    def with_rename(self, rename: str) -> "Dependency":
        return replace(self, rename=rename)

    def with_registry(self, registry: str) -> "Dependency":
        return replace(self, source=_VersionSource(self.version(), None, registry))

    def name_in_manifest(self) -> str:
        """The key used in the manifest: the alias if renamed, else the name."""
        return self.rename if self.rename is not None else self.name

    def version(self) -> Optional[str]:
        if isinstance(self.source, _VersionSource):
            return self.source.version
        return None

    def to_toml(self) -> Tuple[str, Union[str, InlineTable]]:
        """Return the manifest key and either a version string or an inline table."""
        source = self.source
        if (
            not self.optional
            and self.features is None
            and self.default_features
            and isinstance(source, _VersionSource)
            and source.version is not None
            and source.path is None
            and source.registry is None
            and self.rename is None
        ):
            return self.name_in_manifest(), source.version

        data = tomlkit.inline_table()
        if isinstance(source, _VersionSource):
            if source.version is not None:
                data["version"] = source.version
            if source.path is not None:
                data["path"] = source.path
            if source.registry is not None:
                data["registry"] = source.registry
        else:
            data["git"] = source.repo
            if source.spec is not None:
                kind, reference = source.spec
                data[kind.value] = reference
        if self.optional:
            data["optional"] = True
        if self.features is not None:
            data["features"] = list(self.features)
        if not self.default_features:
            data["default-features"] = False
        if self.rename is not None:
            data["package"] = self.name
        return self.name_in_manifest(), data