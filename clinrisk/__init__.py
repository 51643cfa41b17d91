"""
clinrisk: questionnaire-driven clinical risk engine.

Design intent:
- Score each condition domain with fixed, explainable rules.
- Combine domains into a composite that only ever raises risk on comorbidity.
- Decide escalation urgency; never deliver notifications or perform I/O in the scoring path.
"""
