"""API middleware package.

Manifesto:
    Cross-cutting concerns (request ids, error envelopes) belong in
    middleware so routers stay focused on delegating to ``dbmanager.ops``.

Tags:
    api, middleware, cross-cutting, dbmanager

Doc-Types:
    api-reference
"""
