"""Configuration for checking where crates are sourced from."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import SplitResult, urlsplit, urlunsplit

from denylint.diagnostics import Diagnostic, Label, LintLevel, Severity, Spanned

CRATES_IO_URL = "https://github.com/rust-lang/crates.io-index"

_SPECIAL_SCHEMES = {"http", "https", "ws", "wss", "ftp"}
_GIT_EXTENSION = ".git"


class OrgType(enum.Enum):
    """A hosting service whose organizations can be allowed."""

    GITHUB = "github.com"
    GITLAB = "gitlab.com"
    BITBUCKET = "bitbucket.org"

    def __str__(self) -> str:
        return self.value


class GitSpec(enum.IntEnum):
    """Git reference specifiers, from least to most specific."""

    ANY = 0
    BRANCH = 1
    TAG = 2
    REV = 3

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, text: str) -> "GitSpec":
        for spec in cls:
            if str(spec) == text:
                return spec
        raise ValueError(
            f"unknown variant `{text}`, expected one of `any`, `branch`, `tag`, `rev`"
        )


def _parse_url(text: str) -> SplitResult:
    parts = urlsplit(text.strip())
    if not parts.scheme:
        raise ValueError("relative URL without a base")
    scheme = parts.scheme.lower()
    netloc = parts.netloc
    if netloc:
        userinfo, at, hostport = netloc.rpartition("@")
        netloc = f"{userinfo}{at}{hostport.lower()}"
    elif scheme in _SPECIAL_SCHEMES:
        raise ValueError("empty host")
    path = parts.path
    if scheme in _SPECIAL_SCHEMES and not path:
        path = "/"
    return SplitResult(scheme, netloc, path, parts.query, parts.fragment)


def normalize_url(url: str) -> str:
    """Normalize a URL so different spellings compare equal (drops a trailing ``.git``)."""
    parts = _parse_url(url)
    path = parts.path
    if path.endswith(_GIT_EXTENSION):
        path = path[: -len(_GIT_EXTENSION)]
    return urlunsplit(parts._replace(path=path))


def get_org(url: str) -> Optional[Tuple[OrgType, str]]:
    """The hosting service and organization of ``url``, if it is a known host."""
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    org_type = next((t for t in OrgType if t.value == host), None)
    if org_type is None or not parts.path.startswith("/"):
        return None
    return org_type, parts.path[1:].split("/")[0]


def _spanned(value: Any) -> Spanned:
    return value if isinstance(value, Spanned) else Spanned(value)


def _spanned_list(values: Any) -> List[Spanned]:
    return [_spanned(v) for v in values]


def _default_allow_registry() -> List[Spanned]:
    return [Spanned(CRATES_IO_URL, (0, len(CRATES_IO_URL)))]


@dataclass
class Orgs:
    """Organizations, per hosting service, that crates may be sourced from."""

    github: List[Spanned] = field(default_factory=list)
    gitlab: List[Spanned] = field(default_factory=list)
    bitbucket: List[Spanned] = field(default_factory=list)


@dataclass
class UrlSource:
    """An allowed source URL; when not exact, any path below it matches."""

    url: Spanned
    exact: bool


@dataclass
class ValidConfig:
    """A validated sources configuration."""

    file_id: Any
    unknown_registry: LintLevel
    unknown_git: LintLevel
    allowed_sources: List[UrlSource]
    allowed_orgs: List[Tuple[OrgType, Spanned]]
    required_git_spec: Optional[Spanned]


_KEYS = {
    "unknown-registry",
    "unknown-git",
    "allow-registry",
    "allow-git",
    "allow-org",
    "private",
    "required-git-spec",
}


@dataclass
class Config:
    """The user-facing sources configuration."""

    unknown_registry: LintLevel = LintLevel.WARN
    unknown_git: LintLevel = LintLevel.WARN
    allow_registry: List[Spanned] = field(default_factory=_default_allow_registry)
    allow_git: List[Spanned] = field(default_factory=list)
    allow_org: Orgs = field(default_factory=Orgs)
    private: List[Spanned] = field(default_factory=list)
    required_git_spec: Optional[Spanned] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        """Build a configuration from a parsed table with kebab-case keys.

        Values may be plain or already wrapped in :class:`Spanned`.
        """
        unknown = sorted(set(data) - _KEYS)
        if unknown:
            raise ValueError(f"unknown field `{unknown[0]}`")

        config = cls(
            unknown_registry=LintLevel(data.get("unknown-registry", LintLevel.WARN)),
            unknown_git=LintLevel(data.get("unknown-git", LintLevel.WARN)),
        )
        if "allow-registry" in data:
            config.allow_registry = _spanned_list(data["allow-registry"])
        config.allow_git = _spanned_list(data.get("allow-git", ()))
        config.private = _spanned_list(data.get("private", ()))

        orgs = data.get("allow-org", {})
        config.allow_org = Orgs(
            github=_spanned_list(orgs.get("github", ())),
            gitlab=_spanned_list(orgs.get("gitlab", ())),
            bitbucket=_spanned_list(orgs.get("bitbucket", ())),
        )

        spec = data.get("required-git-spec")
        if spec is not None:
            spec = _spanned(spec)
            value = spec.value if isinstance(spec.value, GitSpec) else GitSpec.parse(spec.value)
            config.required_git_spec = Spanned(value, spec.span)
        return config

    def validate(self, cfg_file: Any) -> Tuple[ValidConfig, List[Diagnostic]]:
        """Parse and normalize every URL; return the valid config and any problems."""
        diagnostics: List[Diagnostic] = []
        allowed_sources: List[UrlSource] = []

        candidates = (
            [(u, True) for u in self.allow_registry]
            + [(u, True) for u in self.allow_git]
            + [(u, False) for u in self.private]
        )
        for aurl, exact in candidates:
            try:
                url = normalize_url(aurl.value)
            except ValueError as exc:
                diagnostics.append(
                    Diagnostic(Severity.ERROR)
                    .with_message("failed to parse url")
                    .with_labels([Label.primary(cfg_file, aurl.span).with_message(str(exc))])
                )
                continue
            allowed_sources.append(UrlSource(Spanned(url, aurl.span), exact))

        allowed_orgs = (
            [(OrgType.GITHUB, o) for o in self.allow_org.github]
            + [(OrgType.GITLAB, o) for o in self.allow_org.gitlab]
            + [(OrgType.BITBUCKET, o) for o in self.allow_org.bitbucket]
        )

        valid = ValidConfig(
            file_id=cfg_file,
            unknown_registry=self.unknown_registry,
            unknown_git=self.unknown_git,
            allowed_sources=allowed_sources,
            allowed_orgs=allowed_orgs,
            required_git_spec=self.required_git_spec,
        )
        return valid, diagnostics