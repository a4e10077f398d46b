"""
Static explanatory content lookup for ckmrisk.

Design intent:
- Serve keyed explanation/formula/evidence text opaquely to the UI layer.
"""
