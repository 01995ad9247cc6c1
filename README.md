# denylint

A library that checks where a project's crate dependencies come from. It can also
upgrade dependency entries in a `Cargo.toml` manifest and keep the manifest's
formatting.

## Installation

```
pip install denylint
```

## Checking sources

`denylint.sources_config.Config` describes which registries, git repositories and
hosting organisations (`github.com`, `gitlab.com`, `bitbucket.org`) crates may come
from. It also sets the lint level for unknown sources. `Config.from_dict` reads a
table with kebab-case keys:

- `unknown-registry` and `unknown-git`: `"allow"`, `"warn"` or `"deny"`. The default is `"warn"`.
- `allow-registry`: the default is the crates.io index.
- `allow-git`
- `allow-org`, with `github`, `gitlab` and `bitbucket` lists.
- `private`: hosts with optional paths. Any repository below one of them matches.
- `required-git-spec`

A key that is not on this list raises `ValueError`. A value can be plain, or it can
be wrapped in `denylint.diagnostics.Spanned` to record where it came from in a
configuration file.

`Config.validate(file_id)` returns a pair: a `ValidConfig` and a list of
diagnostics. The diagnostics report URLs that failed to parse. Every allowed URL is
normalized, which removes a trailing `.git`.

```python
from denylint.diagnostics import Label
from denylint.sources import CrateSource, check
from denylint.sources_config import Config

config = Config.from_dict({
    "unknown-git": "deny",
    "allow-git": ["https://github.com/example-org/some-crate"],
    "required-git-spec": "tag",
})
valid, problems = config.validate("deny.toml")

krate_id = "some-crate 0.1.0 git+https://github.com/example-org/some-crate?tag=v0.1.0#abc123"
source = CrateSource("git", "https://github.com/example-org/some-crate?tag=v0.1.0#abc123")
crates = [(krate_id, source, Label.primary("Cargo.lock", (0, len(krate_id))))]

for diag in check(valid, crates):
    print(diag.severity, diag.code, diag.message)
```

`check` returns a list of `Diagnostic` values. Each one has a `severity`, a
`message`, a `code` and `labels`. It takes `(crate_id, source, id_label)` triples,
where `source` may be `None` to skip a crate. Only the kinds `"registry"` and
`"git"` are checked. The diagnostics are:

- `S001`: a git source's reference is less specific than `required-git-spec`.
  The reference is taken from the `branch`, `tag` or `rev` query parameter, and
  the `master` branch counts as `any`.
- `S002`: the source is explicitly allowed. No note is given for crates.io.
- `S003`: the source is allowed by an organisation.
- `S004`: the source is not allowed. Its severity follows the lint level.
- `S005`: an allowed source matched no crate.
- `S006`: an allowed organisation matched no crate.

When both `unknown-registry` and `unknown-git` are `"allow"`, `check` returns
nothing.

`GitSpec` ranks git references from least to most specific: `any`, `branch`,
`tag`, `rev`. `GitSpec.parse` reads these names. `normalize_url` and `get_org` are
also available from `denylint.sources_config`.

`denylint.diagnostics` also holds constructors for license-related diagnostics:
`unlicensed`, `skipped_private_workspace_crate`, `unmatched_license_exception`,
`unmatched_license_allowance` and `missing_clarification_file`.

## Upgrading manifests

```python
from denylint.dependency import Dependency
from denylint.manifest import Manifest

with open("Cargo.toml") as f:
    manifest = Manifest.parse(f.read())
manifest.upgrade([Dependency("serde").with_version("1.0.200")])
print(manifest.dumps())
```

`Dependency` is immutable. Its `with_*` methods (`with_version`, `with_git`,
`with_path`, `with_registry`, `with_optional`, `with_features`,
`with_default_features`, `with_rename`) return changed copies. `to_toml` returns
the manifest key and the value: either a bare version string or an inline table.

`Manifest.upgrade` updates the matching entries in `[dependencies]`,
`[dev-dependencies]`, `[build-dependencies]` and their `target.<cfg>` variants. A
renamed entry is matched by its `package` key. The rules for each kind of entry
are:

- An entry that holds only a version, or a table with a single key, is replaced.
- Any other table loses its `version`, `path` and `git` keys and takes the new
  values. Its other keys stay.

`Manifest.dep_sections` lists the sections it found. `Manifest.get_table` fetches
a table by its path and creates missing tables along the way. It raises
`ManifestError` if a key on the path holds something other than a table.
`Manifest.parse` raises `ManifestError` for invalid TOML.

## What this package does not do

It does not read lock files and does not build a crate graph. The caller supplies
the crate listing that `check` inspects. It does not detect or evaluate licenses,
and it does not check bans or advisories. It has no command-line interface.

## Development

```
pip install -e .[test]
pytest
```