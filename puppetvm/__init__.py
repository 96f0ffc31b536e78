"""Run puppet apply inside a virtual machine over SSH."""

from __future__ import annotations

__version__ = '0.1.0'
