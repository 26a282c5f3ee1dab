"""
exprc Command-Line Interface
============================

This package provides the ``exprc`` command-line tool, a Click-based
application that compiles one expression per invocation and reports
errors with consistent exit codes.
"""

__all__ = ["exprc"]
