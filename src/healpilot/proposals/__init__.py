"""Proposal sets, human selections, apply orchestration, backups and audit reports."""
