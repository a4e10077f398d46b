"""
API orchestration boundary for ckmrisk.

Design intent:
- Expose thin, typed endpoints for session/covariate/result/hazard-ratio flows.
- Keep request validation explicit and failure modes predictable.
- Orchestrate modules without embedding domain logic in routers.
"""
