"""
UI rendering benchmark: drives UI stacks through a headless browser and
aggregates render, bulk-update and mount/unmount timings.
"""

__version__ = "1.0.0"
