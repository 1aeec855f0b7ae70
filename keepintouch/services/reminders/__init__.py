"""
Keep-in-touch reminders: the recurrence engine and the reminder service.
"""
