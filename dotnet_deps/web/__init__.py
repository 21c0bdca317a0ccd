"""HTTP API for the dependency engine."""

from dotnet_deps.web.app import create_app

__all__ = ["create_app"]
