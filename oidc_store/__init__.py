"""
Persistence layer for OAuth2/OpenID Connect entities.

This package provides async SQLAlchemy backed stores for applications,
authorizations, scopes and tokens, plus the resolvers that map custom
entity subclasses onto those stores.
"""
