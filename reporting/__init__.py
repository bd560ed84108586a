"""
Reporting - text rendering and command-line access to exchange evaluations.
"""

from .summary import render_summary

__all__ = ["render_summary"]
