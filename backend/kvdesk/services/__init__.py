"""Services Layer: the KV controller sitting between routes and namespaces.

Invariants:
    - Services receive a KVNamespace, never a concrete client
"""
