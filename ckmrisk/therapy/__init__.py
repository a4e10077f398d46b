"""
Treatment-effect boundary for ckmrisk.

Design intent:
- Own literature hazard ratios and user overrides as an explicit table.
- Compose each medication independently against the baseline risk.
"""
