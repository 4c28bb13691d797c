"""
User Admin Console - Flask + HTMX console over an in-memory user list.

Loads user records from a remote JSON document once per browser session
and provides search, pagination, inline edit, delete and bulk delete.
Nothing is written back to the origin server.
"""
