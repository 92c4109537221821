"""API request and response schemas.

Doc-Types:
    api-reference
"""
