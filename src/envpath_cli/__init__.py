# EnvPath — Idempotent Search-Path Assembly
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
EnvPath core package.

Assembles a search path (PATH) from the current value and a per-platform
table of candidate directories, prepending the ones that exist and are not
already present.
"""

__version__ = "0.1.0"

from .assembler import AssemblyPlan as AssemblyPlan  # noqa: E402,F401
from .assembler import assemble as assemble  # noqa: E402,F401
from .assembler import plan_assembly as plan_assembly  # noqa: E402,F401
