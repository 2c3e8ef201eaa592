from prometheus_client import Counter, Gauge


scheduler_cycles_total = Counter(
    "reminder_scheduler_cycles_total",
    "Total scheduler check-and-dispatch cycles",
)

scheduler_candidates_total = Counter(
    "reminder_scheduler_candidates_total",
    "Total candidate events selected for dispatch",
)

scheduler_running = Gauge(
    "reminder_scheduler_running",
    "1 while the reminder scheduler loop is armed",
)

reminders_dispatch_success_total = Counter(
    "reminders_dispatch_success_total",
    "Total reminder emails delivered",
)

reminders_dispatch_failed_total = Counter(
    "reminders_dispatch_failed_total",
    "Total reminder emails that failed to deliver",
)

ledger_write_failures_total = Counter(
    "reminder_ledger_write_failures_total",
    "Total failures persisting a reminder outcome",
)

selection_errors_total = Counter(
    "reminder_selection_errors_total",
    "Total failed candidate queries",
)
