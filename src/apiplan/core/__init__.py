"""Reading of API test documents.

The primary public entry point is `DocumentParser`, which reads test
documents and environment collections from JSON or YAML text and
validates them into the scenario model.
"""

from .parser import DocumentParser

__all__ = (
    'DocumentParser',
)
