"""Helpers that let client flows call services directly, without HTTP."""
