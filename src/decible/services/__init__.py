"""Request-level services: generation, history, geo/currency, pricing, previews."""
