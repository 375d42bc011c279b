"""
Domain schemas for Fict application.
"""
