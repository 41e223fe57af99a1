"""Backend package: DB models, scoring, pipelines, APIs.

This package orchestrates consultant registration, assignment intake,
match scoring and notification delivery.
"""
