"""
Command line interface for cfnstack.
"""

from .cloudformation import main

__all__ = ["main"]
