"""
API orchestration boundary for clinrisk.

Design intent:
- Expose thin, typed endpoints for assessment, emergency re-check, history and bulk flows.
- Keep request validation explicit and failure modes predictable.
- Orchestrate the engine without embedding scoring logic in routers.
"""
