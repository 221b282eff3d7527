"""
Utility functions for the FBL handler.

This package contains reusable service functions for email parsing and
S3 interactions.
"""

__all__ = ['email', 's3']
