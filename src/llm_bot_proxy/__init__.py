"""
LLM bot content proxy.

Serves a curated content fragment to AI crawlers and browsing agents by
merging it into the origin's page, and passes all other traffic through.
"""

__version__ = "0.1.0"
