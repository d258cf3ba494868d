"""
decible: server-side API layer for a text-to-speech product.

The package glues a static voice catalog, a third-party speech provider and a
managed backend (object storage + REST tables) behind a small FastAPI app.

Main pieces:
    - catalog: static voice records, filtering and facets
    - tts.provider: HTTP client for the speech-synthesis provider
    - backend: REST/storage client for generation history and audio files
    - services: generation proxy, history, geo/currency, pricing, previews
    - api: FastAPI routers and dependency providers

Example Usage:
    >>> from decible.catalog import DEFAULT_CATALOG, QueryFilters
    >>> result = DEFAULT_CATALOG.query(QueryFilters.from_params(category="Documentary"))
    >>> [v.name for v in result.voices]
    ['George', 'Liam', 'Will', 'Eric']
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
