"""
SLA Module
==========

Bounded context for resolution deadlines.

Responsibilities:
- Map ticket priority to a due date
- Decide whether a ticket is breached
- Render time remaining for dashboards
- Load and hot-reload the hours-by-priority table
"""
