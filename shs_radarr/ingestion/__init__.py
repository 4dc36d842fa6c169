"""
Scrape, resolve and list-building steps of the Radarr list generator.
"""
