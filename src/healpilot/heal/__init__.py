"""Failure diagnosis rules and transactional patch application."""
