"""Lunay — multi-tenant backend for AI companion agents.

Users own workspaces and agents, chat with agents through messages,
and collaborate in teams. Every resource access goes through the
ownership guard in lunay.services.guard.
"""

__version__ = "0.1.0"
