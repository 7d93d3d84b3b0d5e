# todo/__init__.py
"""Single-user task list: normalized task records and the list query engine."""
