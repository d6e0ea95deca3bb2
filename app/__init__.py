"""Event management backend: events, categories and attendees over a document store."""
