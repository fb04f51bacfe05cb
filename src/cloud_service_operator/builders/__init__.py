"""Builders that turn custom resource specs into typed specs."""
