"""
Utility functions for Lambda handler operations.

This package contains reusable service functions for reading form
submissions and delivering outbound mail.
"""

__all__ = ['forms', 'mail']
