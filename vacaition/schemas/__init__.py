"""
Pydantic schemas for API request and response validation.

All FastAPI endpoints use strict Pydantic models with explicit types.
`Any` is reserved for SessionState.partial, which mirrors whatever shape
is being streamed.
"""
