"""
Tickets Module
==============

Ticket lifecycle: creation with an SLA due date, assignment, status changes,
breach tracking and deadline reminders.
"""
