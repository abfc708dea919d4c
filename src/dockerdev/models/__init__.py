"""Pydantic models for platform configuration, resources, and deployments."""
