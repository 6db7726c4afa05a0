"""
optipod-oracle: package root

File: src/optipod_oracle/__init__.py
Last updated: 2026-10-18

Purpose
- Consistency oracle for resource-optimization policies: quantity parsing, bounds
  classification, the policy mode contract, scenario generation and scenario validation.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
