"""Scrape, extract and summarize article and social-post URLs into previews."""

__all__ = ["config", "models", "pipeline"]
