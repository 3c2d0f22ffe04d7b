"""Infrastructure Layer: key-value store clients and cross-cutting concerns.

Invariants:
    - Every namespace client satisfies core.store_protocols.KVNamespace
    - Transport failures are mapped to StoreOperationError (core/errors.py)
"""
