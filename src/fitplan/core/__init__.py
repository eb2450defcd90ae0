"""Core plan lifecycle engine: models, editing, completion tracking, generation."""
