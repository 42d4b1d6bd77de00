"""
API Module
==========

FastAPI application exposing the generation and deletion endpoints.
"""
