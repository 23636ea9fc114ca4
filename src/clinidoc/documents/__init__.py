"""Documents module.

This module provides the document lifecycle service.
"""

from clinidoc.documents.service import DocumentService

__all__ = ["DocumentService"]
