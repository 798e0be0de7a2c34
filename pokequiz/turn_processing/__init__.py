"""Player action processing helpers.

This package centralizes validation so every action reaching the engine is
checked the same way and rejected with a readable message.
"""
