"""SFMC Metadata Graph - crawl Salesforce Marketing Cloud assets into a dependency graph."""

__version__ = "2.0.0"
