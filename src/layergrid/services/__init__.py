"""Service layer — editing sessions returning CommandResult.

Services may import from domain, undo, plugins and config.
They must never import from commands or output.
"""
