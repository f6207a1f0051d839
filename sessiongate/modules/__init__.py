"""
SessionGate Modules - Black Box Architecture

cookie and strategy move identifiers, session stores state,
middleware binds the two to a request, events reports lifecycle
changes. Each exposes its public API from its own __init__ and can be
swapped without touching the others.
"""
