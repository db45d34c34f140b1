"""Built-in CLI commands for claude-sdk-auth.

* :mod:`~claude_sdk_auth.commands.auth` -- ``login``, ``status``, ``token``,
  ``refresh``, ``logout`` and ``path``.

The command callbacks are plain functions registered directly on the root
app in :mod:`claude_sdk_auth.app`.
"""
