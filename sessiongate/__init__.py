"""
SessionGate - Repository-backed HTTP sessions

Replaces per-request session handling in FastAPI/Starlette applications
with sessions stored in a pluggable repository.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- cookie: Session identifier cookie serialization
- strategy: Identifier transport (single or multiplexed channels)
- session: Session model and repository contract
- middleware: Request interception and commit-time persistence
- events: Repository events to session listener fan-out
- storage: Redis connection
- config: Server configuration
- api: REST API models
"""

__version__ = "1.0.0"
