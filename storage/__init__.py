"""Persistence backends for sessions, scripts and scores."""
