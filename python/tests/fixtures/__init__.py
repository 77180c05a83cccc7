"""
Pytest fixtures for Scout tests.

Fixtures are organized by test category:
- workspace.py: temporary workspaces, fake extractors, hand-built indexes
- watcher.py: fake clock and fake watchdog observer for watcher/service tests
"""
