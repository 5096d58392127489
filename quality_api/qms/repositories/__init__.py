"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries: the generic document store,
users and notifications.
"""
