# ============================================
# FILE: commandant/cli/__init__.py
# ============================================
"""
CLI module for Commandant - contains command-line interface components.
"""

from commandant.cli.main import main

__all__ = ["main"]
