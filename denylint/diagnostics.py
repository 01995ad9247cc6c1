"""Diagnostic values and the diagnostics emitted by source and license checks."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Generic, Iterable, Optional, Tuple, TypeVar

T = TypeVar("T")

Span = Tuple[int, int]


class Severity(enum.IntEnum):
    """How serious a diagnostic is; larger values are more severe."""

    HELP = 1
    NOTE = 2
    WARNING = 3
    ERROR = 4
    BUG = 5

    def __str__(self) -> str:
        return self.name.lower()


class LintLevel(enum.Enum):
    """What to do when a lint is triggered."""

    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"

    def severity(self) -> Severity:
        """The severity a diagnostic produced at this level is reported with."""
        return {
            LintLevel.ALLOW: Severity.NOTE,
            LintLevel.WARN: Severity.WARNING,
            LintLevel.DENY: Severity.ERROR,
        }[self]


@dataclass(frozen=True, eq=False)
class Spanned(Generic[T]):
    """A value together with the byte range it came from.

    Two spanned values are equal when their values are equal; the span is
    only location information.
    """

    value: T
    span: Span = (0, 0)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Spanned):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)


@dataclass(frozen=True)
class Label:
    """A highlighted range in a file, with an optional message."""

    file_id: Any
    span: Span
    is_primary: bool = True
    message: str = ""

    @classmethod
    def primary(cls, file_id: Any, span: Span) -> "Label":
        return cls(file_id, tuple(span), True)

    @classmethod
    def secondary(cls, file_id: Any, span: Span) -> "Label":
        return cls(file_id, tuple(span), False)

    def with_message(self, message: str) -> "Label":
        return replace(self, message=str(message))


@dataclass(frozen=True)
class CfgCoord:
    """A location inside a configuration file."""

    file: Any
    span: Span

    def into_label(self) -> Label:
        return Label.primary(self.file, self.span)


@dataclass(frozen=True)
class Diagnostic:
    """A reported problem or note."""

    severity: Severity
    message: str = ""
    code: Optional[str] = None
    labels: Tuple[Label, ...] = field(default_factory=tuple)

    def with_message(self, message: str) -> "Diagnostic":
        return replace(self, message=str(message))

    def with_code(self, code: str) -> "Diagnostic":
        return replace(self, code=code)

    def with_labels(self, labels: Iterable[Label]) -> "Diagnostic":
        """Return a copy with ``labels`` appended to the existing ones."""
        return replace(self, labels=self.labels + tuple(labels))


# Source checks


def below_minimum_required_spec(
    src_label: Label, min_spec: Any, actual_spec: Any, min_spec_cfg: CfgCoord
) -> Diagnostic:
    return (
        Diagnostic(Severity.ERROR)
        .with_message(
            f"'git' source is underspecified, expected '{min_spec}', "
            f"but found '{actual_spec}'"
        )
        .with_code("S001")
        .with_labels(
            [
                src_label,
                min_spec_cfg.into_label().with_message("minimum spec defined here"),
            ]
        )
    )


def explicitly_allowed_source(
    src_label: Label, type_name: str, allow_cfg: CfgCoord
) -> Diagnostic:
    return (
        Diagnostic(Severity.NOTE)
        .with_message(f"'{type_name}' source explicitly allowed")
        .with_code("S002")
        .with_labels(
            [
                src_label,
                allow_cfg.into_label().with_message("source allowance configuration"),
            ]
        )
    )


def source_allowed_by_org(src_label: Label, org_cfg: CfgCoord) -> Diagnostic:
    return (
        Diagnostic(Severity.NOTE)
        .with_message("source allowed by organization allowance")
        .with_code("S003")
        .with_labels(
            [
                src_label,
                org_cfg.into_label().with_message("org allowance configuration"),
            ]
        )
    )


def source_not_explicitly_allowed(
    src_label: Label, type_name: str, lint_level: LintLevel
) -> Diagnostic:
    return (
        Diagnostic(lint_level.severity())
        .with_message(f"detected '{type_name}' source not explicitly allowed")
        .with_code("S004")
        .with_labels([src_label])
    )


def unmatched_allow_source(allow_src_cfg: CfgCoord) -> Diagnostic:
    return (
        Diagnostic(Severity.WARNING)
        .with_message("allowed source was not encountered")
        .with_code("S005")
        .with_labels(
            [
                allow_src_cfg.into_label().with_message(
                    "no crate source matched these criteria"
                )
            ]
        )
    )


def unmatched_allow_org(allow_org_cfg: CfgCoord, org_type: Any) -> Diagnostic:
    return (
        Diagnostic(Severity.WARNING)
        .with_message(f"allowed '{org_type}' organization  was not encountered")
        .with_code("S006")
        .with_labels(
            [
                allow_org_cfg.into_label().with_message(
                    "no crate source fell under this organization"
                )
            ]
        )
    )


# License checks


def unlicensed(severity: Severity, krate: Any, breadcrumbs: Iterable[Label]) -> Diagnostic:
    return (
        Diagnostic(severity)
        .with_message(f"{krate} is unlicensed")
        .with_code("L003")
        .with_labels(breadcrumbs)
    )


def skipped_private_workspace_crate(krate: Any) -> Diagnostic:
    return (
        Diagnostic(Severity.HELP)
        .with_message(f"skipping private workspace crate '{krate}'")
        .with_code("L004")
    )


def unmatched_license_exception(license_exc_cfg: CfgCoord) -> Diagnostic:
    return (
        Diagnostic(Severity.WARNING)
        .with_message("license exception was not encountered")
        .with_code("L005")
        .with_labels(
            [license_exc_cfg.into_label().with_message("unmatched license exception")]
        )
    )


def unmatched_license_allowance(
    severity: Severity, allowed_license_cfg: CfgCoord
) -> Diagnostic:
    return (
        Diagnostic(severity)
        .with_message("license was not encountered")
        .with_code("L006")
        .with_labels(
            [
                allowed_license_cfg.into_label().with_message(
                    "unmatched license allowance"
                )
            ]
        )
    )


def missing_clarification_file(expected: Spanned, cfg_file_id: Any) -> Label:
    return Label.secondary(cfg_file_id, expected.span).with_message(
        "unable to locate specified license file"
    )