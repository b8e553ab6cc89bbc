"""
Django-backed services for the publication rule engine.
"""
