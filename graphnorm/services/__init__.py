"""Services: schema registry, normalizer, denormalizer, store."""
