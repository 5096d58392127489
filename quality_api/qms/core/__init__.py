"""
Core application utilities for settings and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Auth dependencies (current user, role guards)
- Domain errors, logging context and role names
"""
