# logsink/ops/__init__.py
"""Housekeeping around the core: retention sweeps and front-end wiring."""
