import pytest

from denylint.dependency import GitSpec as GitReferenceKind
from denylint.diagnostics import Label, Severity, Spanned
from denylint.sources import CrateSource, GitReference, check
from denylint.sources_config import Config, GitSpec

CRATES_IO = "https://github.com/rust-lang/crates.io-index"

CRATE_IDS = [
    ("sources 0.1.0", None),
    ("amethyst_core 0.10.0", "git+https://gitlab.com/amethyst-engine/amethyst?rev=a1b2c3d#a1b2c3d4"),
    ("amethyst_error 0.5.0", "git+https://gitlab.com/amethyst-engine/amethyst?rev=a1b2c3d#a1b2c3d4"),
    ("krates 0.4.0", "git+https://github.com/EmbarkStudios/krates?branch=main#0011aabb"),
    ("line-wrap 0.1.1", "git+https://bitbucket.org/marshallpierce/line-wrap-rs?branch=master#ffee0011"),
    ("spdx 0.3.1", "git+https://github.com/EmbarkStudios/spdx?tag=0.3.1#22334455"),
    ("failure 0.1.8", "registry+" + CRATES_IO),
    ("semver 0.9.0", "registry+" + CRATES_IO),
]

LOCK_FILE = "sources/Cargo.lock"
CFG_FILE = "sources.toml"


def _crates():
    lines, crates, offset = [], [], 0
    for prefix, raw in CRATE_IDS:
        krate_id = prefix if raw is None else f"{prefix} {raw}"
        source = None
        if raw is not None:
            kind, _, url = raw.partition("+")
            source = CrateSource(kind, url)
        label = Label.primary(LOCK_FILE, (offset, offset + len(krate_id)))
        crates.append((krate_id, source, label))
        lines.append(krate_id)
        offset += len(krate_id) + 1
    return crates, "\n".join(lines)


def _run(cfg_dict):
    crates, text = _crates()
    valid, cfg_diags = Config.from_dict(cfg_dict).validate(CFG_FILE)
    assert cfg_diags == []
    return check(valid, crates), text


def _span_text(label, text):
    start, end = label.span
    return text[start:end]


def _spanned_urls(cfg_text, urls):
    result = []
    for url in urls:
        quoted = f"'{url}'"
        start = cfg_text.index(quoted)
        result.append(Spanned(url, (start, start + len(quoted))))
    return result


def test_fails_unknown_git():
    diags, text = _run({"unknown-git": "deny"})
    failed_urls = [
        "https://gitlab.com/amethyst-engine/amethyst",
        "https://github.com/EmbarkStudios/krates",
        "https://bitbucket.org/marshallpierce/line-wrap-rs",
        "https://github.com/EmbarkStudios/spdx",
    ]
    for url in failed_urls:
        assert any(
            d.severity is Severity.ERROR
            and d.message == "detected 'git' source not explicitly allowed"
            and url in _span_text(d.labels[0], text)
            for d in diags
        ), url


def test_allows_git():
    urls = [
        "https://gitlab.com/amethyst-engine/amethyst",
        "https://github.com/EmbarkStudios/krates",
        "https://bitbucket.org/marshallpierce/line-wrap-rs",
    ]
    cfg_text = "unknown-git = 'deny'\nallow-git = [\n" + "".join(f"    '{u}',\n" for u in urls) + "]"
    crates, text = _crates()
    config = Config.from_dict(
        {"unknown-git": "deny", "allow-git": _spanned_urls(cfg_text, urls)}
    )
    valid, cfg_diags = config.validate(CFG_FILE)
    assert cfg_diags == []
    diags = check(valid, crates)

    for url in urls:
        assert any(
            d.severity is Severity.NOTE
            and d.message == "'git' source explicitly allowed"
            and url in _span_text(d.labels[0], text)
            and _span_text(d.labels[1], cfg_text) == f"'{url}'"
            for d in diags
        ), url


@pytest.mark.parametrize(
    "orgs, allowed_by_org",
    [
        (
            {"github": ["EmbarkStudios"]},
            ["https://github.com/EmbarkStudios/krates", "https://github.com/EmbarkStudios/spdx"],
        ),
        ({"gitlab": ["amethyst-engine"]}, ["https://gitlab.com/amethyst-engine"]),
        (
            {"bitbucket": ["marshallpierce"]},
            ["https://bitbucket.org/marshallpierce/line-wrap-rs"],
        ),
    ],
)
def test_allows_org(orgs, allowed_by_org):
    diags, text = _run({"unknown-git": "deny", "allow-org": orgs})
    assert diags
    notes = 0
    for diag in diags:
        source = _span_text(diag.labels[0], text)
        assert diag.severity in (Severity.ERROR, Severity.NOTE)
        if diag.severity is Severity.ERROR:
            assert not any(ao in source for ao in allowed_by_org)
        else:
            notes += 1
            assert any(ao in source for ao in allowed_by_org)
    assert notes >= 1


def test_validates_git_source_specs():
    assert GitSpec.REV > GitSpec.TAG
    assert GitSpec.TAG > GitSpec.BRANCH
    assert GitSpec.BRANCH > GitSpec.ANY

    levels = [
        (GitSpec.REV, "https://gitlab.com/amethyst-engine/amethyst"),
        (GitSpec.TAG, "https://github.com/EmbarkStudios/spdx"),
        (GitSpec.BRANCH, "https://github.com/EmbarkStudios/krates"),
        (GitSpec.ANY, "https://bitbucket.org/marshallpierce/line-wrap-rs"),
    ]

    for i, (spec, _) in enumerate(levels):
        diags, text = _run({"unknown-git": "allow", "required-git-spec": str(spec)})
        diags = [
            d for d in diags if d.message.startswith("'git' source is underspecified, expected")
        ]
        for j, (_, url) in enumerate(levels):
            severities = [d.severity for d in diags if url in _span_text(d.labels[0], text)]
            if j <= i:
                assert severities == []
            else:
                assert severities
                assert all(s is Severity.ERROR for s in severities)


def test_everything_allowed_short_circuits():
    diags, _ = _run({"unknown-git": "allow", "unknown-registry": "allow"})
    assert diags == []


def test_unmatched_allow_source_reported():
    cfg_text = "allow-git = ['https://example.com/nothing/here']"
    urls = _spanned_urls(cfg_text, ["https://example.com/nothing/here"])
    crates, _ = _crates()
    valid, _ = Config.from_dict({"allow-git": urls}).validate(CFG_FILE)
    diags = check(valid, crates)
    unmatched = [d for d in diags if d.code == "S005"]
    assert len(unmatched) == 1
    assert unmatched[0].message == "allowed source was not encountered"
    assert _span_text(unmatched[0].labels[0], cfg_text) == "'https://example.com/nothing/here'"


def test_unmatched_org_reported():
    diags, _ = _run({"allow-org": {"github": ["nobody-here"]}})
    unmatched = [d for d in diags if d.code == "S006"]
    assert len(unmatched) == 1
    assert unmatched[0].message == "allowed 'github.com' organization  was not encountered"


def test_crates_io_is_silently_allowed():
    diags, text = _run({})
    assert not any(CRATES_IO in _span_text(d.labels[0], text) for d in diags if d.labels)


def test_strip_url_removes_revision():
    source = CrateSource(
        "git",
        "https://github.com/RustSec/rustsec-crate.git?rev=aaba369"
        "#aaba369bebc4fcfb9133b1379bcf430b707188a2",
    )
    assert source.strip_url() == "https://github.com/RustSec/rustsec-crate"


def test_git_reference_from_query():
    source = CrateSource("git", "https://github.com/EmbarkStudios/spdx?tag=0.3.1#22334455")
    assert source._git_reference() == GitReference(GitReferenceKind.TAG, "0.3.1")
    assert CrateSource("git", "https://example.com/repo")._git_reference() is None


def test_crate_id_without_source_component_rejected():
    valid, _ = Config.from_dict({}).validate(CFG_FILE)
    crates = [("nospace", CrateSource("registry", CRATES_IO), Label.primary(LOCK_FILE, (0, 7)))]
    with pytest.raises(ValueError):
        check(valid, crates)