"""
Catalog package: the library domain core.

This package contains:
- Entity models (authors, books, author/book links, comments, users)
- Request and response schemas
- The Result envelope returned by every service operation
- Pagination and paged results
- Authorization predicates
- Domain services for authors, books, comments, bulk authors and users
"""

__version__ = "1.0.0"
