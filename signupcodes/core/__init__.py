"""
Core utilities shared across the signup-code engine.

This package hosts configuration (env vars), logging setup and the
transport-level rate limit helper. Services depend on these primitives
instead of reading os.environ or configuring handlers themselves.
"""
