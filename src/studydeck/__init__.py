"""Flashcard review and timed exam study tool."""
