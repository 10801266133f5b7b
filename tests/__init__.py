"""
Tests Package.

This package contains test suites for the Neural Architect simulator,
including unit tests for the network model, scheduler, projection and scene
builder, and integration tests for the simulation facade, asyncio runner,
HTTP backend and CLI.
"""

# Tests Package
