"""
Services Layer

Business logic that sits between the HTTP routes and the pure scheduling core:
- Accept domain inputs (IDs, sessions, field changes)
- Load a ScheduleState, run the pure computation, write the result back
- Do NOT depend on HTTP request/response objects
- Every multi-row write is a single session commit
"""
