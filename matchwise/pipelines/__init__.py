"""Pipelines for consultant registration, assignments, matching and notifications.

Each step is callable independently so the HTTP layer, bulk imports and
scripts can share them.
"""
