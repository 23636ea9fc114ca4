"""Utils module.

This module provides the exception hierarchy and locale helpers.
"""
