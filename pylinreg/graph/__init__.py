"""
Reference adapters for the collaborator protocols.

InMemoryGraph: nodes, relationships, named queries and stored models in
a single dictionary-backed store.
"""

from pylinreg.graph.memory import InMemoryGraph, Entity, EntityResult

__all__ = [
    "InMemoryGraph",
    "Entity",
    "EntityResult",
]
