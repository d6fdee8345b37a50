"""Persistence for learner performance and learning paths."""
