"""
World Monitor - event correlation engine and its HTTP/webhook collaborators.
"""

__version__ = "1.0.0"
