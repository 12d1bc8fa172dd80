"""Recolor product photos with Gemini image editing."""
