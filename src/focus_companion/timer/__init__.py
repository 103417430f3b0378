"""
Focus timer subsystem.

Components:
- session_models.py: Session record, states, command results
- session_store.py: one Session per user behind a per-user lock
- scheduler.py: asyncio scheduler + generation-tagged handle table
- state_machine.py: start/pause/resume/stop and the scheduled triggers
- render.py: plain-text timer displays
- runtime.py: background event loop and the reconciliation sweep
"""
