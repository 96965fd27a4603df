"""Smoke runner that drives a live filegate server over HTTP."""
