"""
Workload Module
===============

Engineer workload bookkeeping and reconciliation.
"""
