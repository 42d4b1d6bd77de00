"""
Storage Module
==============

Remote object storage for rendered images.
"""
