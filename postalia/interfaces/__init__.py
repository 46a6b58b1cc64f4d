"""Public interface definitions for Postalia's external collaborators.

Every upstream postal API and the response cache are accessed exclusively
through the abstract base classes defined here.  Concrete adapters live in
``postalia/providers/`` and are wired together in ``postalia/main.py``.

CONCRETE PROVIDER MAP:
    Interface          →  Concrete implementations (in postalia/providers/)
    ─────────────────────────────────────────────────────────────────────
    IPostalProvider    →  GeoNamesProvider, TemplateProvider
    ICacheProvider     →  MemoryCacheProvider
"""

from postalia.interfaces.cache_provider import ICacheProvider
from postalia.interfaces.postal_provider import IPostalProvider

__all__ = [
    "ICacheProvider",
    "IPostalProvider",
]
