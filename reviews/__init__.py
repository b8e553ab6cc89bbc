"""
Reviews Django application.

This app holds the product review collection and the publication rule
engine that gates verdicts before they go public.
"""
