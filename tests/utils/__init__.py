"""
Test Utilities
==============

Stub collaborators and payload generators shared by the test suite.
"""
