"""
CLI module for peekaboo.

Provides the ``peekaboo`` command: the stdio MCP server and one-shot
listing, reading and search commands.
"""

from peekaboo.cli.main import cli

__all__ = ["cli"]
