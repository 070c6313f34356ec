"""
Services Layer

Pure scheduling logic that:
- Accepts domain inputs (tournament contexts, units, locks)
- Returns domain outputs (rounds, summaries, standings) or raises SchedulingError
- Does NOT depend on HTTP request/response objects
- Does NOT touch the database, except snapshot_store
"""
