"""Core quiz primitives (sampling, round generation, answer checking and the session engine).

Kept free of FastAPI and Redis concerns so it can be reused by API routes, scripts, and tests.
"""
