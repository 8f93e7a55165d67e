"""Typer command-line interface (``rookie-guide``)."""
