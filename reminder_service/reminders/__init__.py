"""Reminder scheduling and idempotent delivery.

Scheduler loop -> window selector -> notification dispatcher -> email channel,
with every outcome recorded in the ``reminder_logs`` ledger.
"""
