"""
Core Business Logic
==================

Validation, layout composition, rasterization, storage and pipeline sequencing.
"""
