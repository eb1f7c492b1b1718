"""
Composer test configuration.

Composer tests are synchronous except the slide-rotation tests that use
the running event loop; those run under asyncio auto mode from pyproject.toml.
"""
