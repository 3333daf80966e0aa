"""FinBook backend: income, expense and receivable tracking with email reminders."""
