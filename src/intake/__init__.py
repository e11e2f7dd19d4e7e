"""Intake API: users and program applications over an async SQL store."""
