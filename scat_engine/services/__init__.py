"""
services/ — session lifecycle and external collaborators

Modules:
    display.py        - Display-mode protocol and headless display
    result_store.py   - Result persistence protocol and in-memory store
    orchestrator.py   - Session Orchestrator state machine
"""
