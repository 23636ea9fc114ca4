"""Store module.

This module provides repository interfaces and their in-memory and
JSON-file implementations.
"""

from clinidoc.store.json_store import (
    JsonDocumentStore,
    JsonPatientStore,
    JsonTemplateStore,
    Stores,
    open_stores,
)
from clinidoc.store.repositories import (
    DocumentStore,
    InMemoryDocumentStore,
    InMemoryPatientStore,
    InMemoryTemplateStore,
    PatientStore,
    TemplateStore,
    bump_version_tag,
)

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "InMemoryPatientStore",
    "InMemoryTemplateStore",
    "JsonDocumentStore",
    "JsonPatientStore",
    "JsonTemplateStore",
    "PatientStore",
    "Stores",
    "TemplateStore",
    "bump_version_tag",
    "open_stores",
]
