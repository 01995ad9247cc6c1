[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "denylint"
version = "0.1.0"
description = "Check where crate dependencies come from and upgrade dependency entries in manifests"
requires-python = ">=3.10"
keywords = ["dependencies", "manifest", "lint", "sources", "toml", "diagnostics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
]
dependencies = ["tomlkit"]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["denylint"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
