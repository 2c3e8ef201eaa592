"""Event reminder service: scans upcoming events and emails one reminder per trigger."""
