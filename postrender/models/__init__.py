"""
Data Models
===========

Pydantic models for requests, composed documents and API responses.
"""
