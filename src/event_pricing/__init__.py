"""
Event Pricing Package

Tiered registration pricing for event administration.
Resolves Category × Audience × Tier prices with chained tier date windows
and bulk-saves the resulting rule set to the event backend.
"""

__version__ = "1.0.0"
