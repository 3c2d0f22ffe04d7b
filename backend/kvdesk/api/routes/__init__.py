"""Route Modules: one file per resource/concern.

Invariants:
    - Each module exposes a ROUTES list of RouteConfig entries
    - Routes never talk to a namespace directly (delegate to KVController)
"""
