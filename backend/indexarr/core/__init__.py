"""Core search engine, configuration and ambient services."""
