"""Pydantic schemas for API request/response validation and conversation state."""
