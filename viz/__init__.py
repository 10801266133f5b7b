"""
Visualization Package.

This package provides render surfaces for the Neural Architect sandbox. The
matplotlib surface draws the depth-sorted render lists produced by
`nexus_view.scene_builder`, which is handy for headless snapshots and tests.
"""

# Visualization Package
