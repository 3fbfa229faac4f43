"""API routers, mounted under the versioned prefix by api.main."""

from api.routers import authors, authors_collection, books, comments, users

all_routers = [
    authors.router,
    authors_collection.router,
    books.router,
    comments.router,
    users.router,
]
