"""
ckmrisk backend package.

Design intent:
- Host the cardio-kidney-metabolic risk engine behind a thin service layer.
- Keep domain modules (validation/risk/therapy/content) independent of the API.
"""
