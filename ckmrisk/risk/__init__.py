"""
Risk computation boundary for ckmrisk.

Design intent:
- Turn committed covariates into published-model risk estimates.
- Keep every model a pure function of its inputs.
- Report missing covariates as absent results, never as errors.
"""
