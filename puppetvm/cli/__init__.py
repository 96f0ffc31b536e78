"""CLI package exports for top-level command entry points."""

from __future__ import annotations

from .main import PuppetVMModalCLI, main

__all__ = ['PuppetVMModalCLI', 'main']
