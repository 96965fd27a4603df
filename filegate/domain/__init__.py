"""Pure domain utilities: paths, scopes, tokens, clock, errors.

These modules are free of FastAPI/HTTP and filesystem concerns so they can be
unit-tested in isolation and reused by the services and the smoke runner.
"""
__all__ = ["paths", "scopes", "tokens", "clock", "errors"]
