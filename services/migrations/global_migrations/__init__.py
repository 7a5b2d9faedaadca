"""Migrations applied to the user-scope configuration file."""
