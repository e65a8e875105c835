"""
Pytest configuration.

Lives at the repository root so the ``src`` package is importable from tests.
"""
