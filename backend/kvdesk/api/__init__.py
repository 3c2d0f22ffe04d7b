"""API Layer: static route table, entry guards and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return the JSON envelope or a byte stream
"""
