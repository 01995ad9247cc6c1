"""Checks that every crate comes from an allowed registry or git repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from denylint import diagnostics as diags
from denylint.dependency import GitSpec as GitReferenceKind
from denylint.diagnostics import CfgCoord, Diagnostic, Label
from denylint.sources_config import (
    CRATES_IO_URL,
    GitSpec,
    UrlSource,
    ValidConfig,
    _parse_url,
    get_org,
    normalize_url,
)

_REFERENCE_KEYS = {
    "branch": GitReferenceKind.BRANCH,
    "tag": GitReferenceKind.TAG,
    "rev": GitReferenceKind.REV,
}


@dataclass(frozen=True)
class GitReference:
    """A branch, tag or revision a git source points at."""

    kind: GitReferenceKind
    name: str


def _spec_of(reference: Optional[GitReference]) -> GitSpec:
    if reference is None:
        return GitSpec.ANY
    if reference.kind is GitReferenceKind.BRANCH:
        # The `master` branch is what an unspecified reference resolves to.
        return GitSpec.ANY if reference.name == "master" else GitSpec.BRANCH
    if reference.kind is GitReferenceKind.TAG:
        return GitSpec.TAG
    return GitSpec.REV


@dataclass(frozen=True)
class CrateSource:
    """Where a crate comes from: its kind (``registry``, ``git``, ...) and URL."""

    kind: str
    url: str

    def strip_url(self) -> str:
        """The normalized URL without the git revision (query and fragment)."""
        parts = _parse_url(self.url)
        return normalize_url(urlunsplit(parts._replace(query="", fragment="")))

    def _git_reference(self) -> Optional[GitReference]:
        for key, value in parse_qsl(urlsplit(self.url).query):
            kind = _REFERENCE_KEYS.get(key)
            if kind is not None:
                return GitReference(kind, value)
        return None


def _matches(src: UrlSource, source_url: str) -> bool:
    if src.exact:
        return src.url.value == source_url
    allowed = urlsplit(src.url.value)
    actual = urlsplit(source_url)
    return actual.hostname == allowed.hostname and actual.path.startswith(allowed.path)


def check(
    cfg: ValidConfig,
    crates: Iterable[Tuple[str, Optional[CrateSource], Label]],
) -> List[Diagnostic]:
    """Check the source of every crate.

    ``crates`` yields ``(crate_id, source, id_label)`` where ``id_label`` spans
    the whole crate id (``name version source``) in the crate listing.
    """
    from denylint.diagnostics import LintLevel

    if cfg.unknown_registry is LintLevel.ALLOW and cfg.unknown_git is LintLevel.ALLOW:
        return []

    results: List[Diagnostic] = []
    source_hits = [False] * len(cfg.allowed_sources)
    org_hits = [False] * len(cfg.allowed_orgs)

    min_git_spec = None
    if cfg.required_git_spec is not None:
        min_git_spec = (
            cfg.required_git_spec.value,
            CfgCoord(cfg.file_id, cfg.required_git_spec.span),
        )

    for krate_id, source, id_label in crates:
        if source is None:
            continue

        last_space = krate_id.rfind(" ")
        if last_space == -1:
            raise ValueError(f"crate id '{krate_id}' has no source component")
        start, end = id_label.span
        src_label = Label.primary(id_label.file_id, (start + last_space + 1, end)).with_message(
            "source"
        )

        pack: List[Diagnostic] = []
        if source.kind == "registry":
            lint_level, type_name = cfg.unknown_registry, "registry"
        elif source.kind == "git":
            if min_git_spec is not None:
                min_spec, cfg_coord = min_git_spec
                spec = _spec_of(source._git_reference())
                if spec < min_spec:
                    pack.append(
                        diags.below_minimum_required_spec(src_label, min_spec, spec, cfg_coord)
                    )
            lint_level, type_name = cfg.unknown_git, "git"
        else:
            continue

        source_url = source.strip_url()
        index = next(
            (i for i, src in enumerate(cfg.allowed_sources) if _matches(src, source_url)),
            None,
        )
        if index is not None:
            # crates.io is the default and the bulk of crates, so it gets no note
            if source_url != CRATES_IO_URL:
                pack.append(
                    diags.explicitly_allowed_source(
                        src_label,
                        type_name,
                        CfgCoord(cfg.file_id, cfg.allowed_sources[index].url.span),
                    )
                )
            source_hits[index] = True
        else:
            org = get_org(source_url)
            org_index = None
            if org is not None:
                org_type, org_name = org
                org_index = next(
                    (
                        i
                        for i, (allowed_type, allowed_name) in enumerate(cfg.allowed_orgs)
                        if allowed_type is org_type and allowed_name.value == org_name
                    ),
                    None,
                )
            if org_index is not None:
                org_hits[org_index] = True
                pack.append(
                    diags.source_allowed_by_org(
                        src_label,
                        CfgCoord(cfg.file_id, cfg.allowed_orgs[org_index][1].span),
                    )
                )
            else:
                pack.append(diags.source_not_explicitly_allowed(src_label, type_name, lint_level))

        results.extend(pack)

    for hit, src in zip(source_hits, cfg.allowed_sources):
        # Disallowing crates.io means configuring the registries by hand.
        if hit or src.url.value == CRATES_IO_URL:
            continue
        results.append(diags.unmatched_allow_source(CfgCoord(cfg.file_id, src.url.span)))

    for hit, (org_type, org_name) in zip(org_hits, cfg.allowed_orgs):
        if not hit:
            results.append(
                diags.unmatched_allow_org(CfgCoord(cfg.file_id, org_name.span), org_type)
            )

    return results