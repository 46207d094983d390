"""Domain layer — cells, layers, documents, and the rules that shape them.

This layer depends only on stdlib.
It must never import from undo, services, plugins, commands, or config.
"""
