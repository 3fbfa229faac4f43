"""
Storage package: MongoDB persistence for the library catalog.

This package contains:
- Connection, index and id-sequence management
- The composable query specification used for filtered, ordered, paged reads
- Repositories for authors, books, author/book links, comments, users and errors
- The archive storage port for uploaded photos and its local-disk adapter
"""
