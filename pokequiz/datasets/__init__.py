"""Offline dataset builders used by the scripts under `scripts/`.

Parsing helpers are pure so they can be tested without network access.
"""
