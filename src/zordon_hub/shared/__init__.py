"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (tickets, comments,
users, workload, notifications).

DO NOT add ticket or comment business logic to the shared kernel.
"""
