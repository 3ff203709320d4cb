"""API subpackage - FastAPI application for event categories and pricing rules."""
