"""API routers package.

Manifesto:
    Each router module owns one group of endpoints (databases, tables,
    data, health) and delegates to ``dbmanager.ops`` for the work.

Tags:
    api, routers, REST, dbmanager

Doc-Types:
    api-reference
"""
