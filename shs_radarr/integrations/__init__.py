"""
External system integrations (TMDb, Fandom).

Metadata clients live under this namespace so they remain decoupled from the
pipeline code in `shs_radarr.ingestion` and the scripts in `scripts/`.
"""
