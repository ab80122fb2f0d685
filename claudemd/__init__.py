"""claudemd -- generate AI-assistant context documents for a project.

Scans a project directory, picks a framework-specific template, renders it
with the detected facts and the caller's preferences, checks the result for
secrets and structural problems, and writes ``CLAUDE.md`` (plus an optional
``AGENTS.md``) with a backup of whatever was there before.
"""

__version__ = "0.1.0"
