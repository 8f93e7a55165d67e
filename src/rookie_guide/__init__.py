"""
Rookie Guide - life-guide templates forked into personal checklists.

Subpackages:
- rookie_guide.core: models, progress engine, repositories, migrations
- rookie_guide.ops: transport-agnostic operation functions
- rookie_guide.api: FastAPI application
- rookie_guide.cli: Typer command line
"""

__version__ = "0.1.0"
