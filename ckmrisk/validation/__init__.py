"""
Input plausibility boundary for ckmrisk.

Design intent:
- Classify committed numeric inputs into none/soft/hard tiers.
- Hard tiers block every result; soft tiers are advisory only.
"""
