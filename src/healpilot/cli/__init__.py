"""Terminal commands for healpilot."""
