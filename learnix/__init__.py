"""Learnix learning management system backend."""
