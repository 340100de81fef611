"""Run-scoped real-time engine for live group exercises."""
