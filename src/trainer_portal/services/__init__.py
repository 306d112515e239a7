"""Services: auth, storage, email, analytics, check-in rules and reminders."""
