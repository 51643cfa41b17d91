"""
Composite risk, emergency escalation and risk history for clinrisk.

Design intent:
- A second condition can only raise the composite; it never dilutes the worst one.
- Escalation is decided from fixed indicator tiers, not free-form model output.
- Recommendation text suggests review; it never diagnoses or prescribes.
"""
