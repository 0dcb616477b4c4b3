"""
Podscription — Kubernetes "Pod Doctor" troubleshooting API.

Subpackages:
- core          : config, prompts, intent classification, diagnosis, pipeline
- models        : pydantic models for sessions and request/response bodies
- providers     : model backend client
- routers       : FastAPI routes
- runtime_state : session store
- utils         : logging, file I/O, timers, locks
"""

__version__ = "1.0.0"
