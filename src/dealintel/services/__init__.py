"""Async dashboard assembly and AI response parsing."""
