"""
Schemas package.

Pydantic models for request bodies, response envelopes and realtime events.
"""
