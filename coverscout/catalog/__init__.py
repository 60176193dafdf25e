"""
Book Catalog Clients
"""

from coverscout.catalog.isbndb import (
    ISBNdbClient,
    CatalogConfigurationError,
    CatalogRequestError,
)

__all__ = [
    "ISBNdbClient",
    "CatalogConfigurationError",
    "CatalogRequestError",
]
