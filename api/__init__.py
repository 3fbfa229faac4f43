"""
FastAPI RESTful API for the Library service.

This module provides a REST API for:
- Author browsing, filtering and management (with photos)
- Books with ordered authors, and user comments on them
- Registration, login and JWT bearer authentication
- Rate limiting
"""
