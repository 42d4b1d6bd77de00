"""
Pipeline Module
===============

Generation and deletion pipelines sequencing the core components.
"""
