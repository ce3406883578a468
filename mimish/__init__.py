"""A small interactive command shell with pipes, redirections, here-documents and builtins."""

__version__ = "0.0.4"
__all__ = ["builtins", "commands", "environment", "executor", "heredoc", "quotes", "shell", "syntax"]