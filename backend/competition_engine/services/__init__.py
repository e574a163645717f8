"""
Services Layer

Pure business logic services that:
- Accept domain inputs (IDs, a CompetitionStore, plain records)
- Return domain outputs (models, dataclasses, dicts)
- Do NOT depend on HTTP request/response objects
- Only mutate data inside a store.atomic() unit
"""
