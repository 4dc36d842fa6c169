"""
Shared library code for the Scott Hasn't Seen Radarr list generator.

Entrypoints (CLI scripts in `scripts/`) should import from `shs_radarr` rather than
the other way around.
"""
