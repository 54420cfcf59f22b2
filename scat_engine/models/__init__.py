"""
models/ — session and module result records

Modules:
    enumerations.py   - Module kinds, session types, command types, symptoms, stances
    results.py        - Per-module result variants (discriminated on ``kind``)
    session.py        - Session record and fixed module orders
"""
