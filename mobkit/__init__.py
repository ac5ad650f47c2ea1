"""
mobkit — Scaffold, configure and drive Android and Apple builds for Rust apps.
"""

NAME = "mobkit"
__version__ = "0.4.0"
