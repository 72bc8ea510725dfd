"""
Pydantic request/response schemas (the API contract).

All models serialize with camelCase field names (`startTime`, `scheduleId`)
and accept either camelCase or snake_case on input.
"""
