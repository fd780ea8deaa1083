"""Pydantic models for inbound chat events."""
