"""
HTTP boundary: FastAPI routes and response schemas.
"""
