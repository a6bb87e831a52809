"""
Domain layer for contact form business logic.

This layer contains:
- Data models (settings, messages, responses)
- Business logic (validation, verification, redirects, request pipeline)
- Result types (explicit success/failure handling)
"""
