"""FocusFlow Python package: tasks + calendar state and derived views.

Public API:
  - import from `focusflow.api` (preferred) or `import focusflow` (re-export)
"""

from __future__ import annotations

from .api import *  # noqa: F401,F403
from . import api as _api

__all__ = list(_api.__all__)
