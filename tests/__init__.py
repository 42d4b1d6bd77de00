"""
Test Suite
==========

Unit and integration tests for the post render service.
"""
