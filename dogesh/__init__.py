"""Lexing, parsing, execution, prompt, line editing and completion for a small Unix shell."""

__version__ = "0.1.0"