"""Crate source checks, diagnostics, and dependency editing for manifests."""

__version__ = "0.1.0"
__all__ = ["diagnostics", "dependency", "manifest", "sources_config", "sources"]