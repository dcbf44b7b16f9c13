"""
Services Layer

The tour engine (pool, team formation, tour generation, time window,
schedule controller, round clock, ranking) plus the SQL store it persists
through. Engine modules:
- Take immutable snapshots in and return new snapshots
- Do NOT depend on HTTP request/response objects
- Reach the database only through the ScheduleStore collaborator
"""
