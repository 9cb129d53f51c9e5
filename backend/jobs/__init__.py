"""Tâches planifiées du backend."""
