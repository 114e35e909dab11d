"""CardStorage adapters."""

# Fixed key the card collection is stored under.
DEFAULT_NAMESPACE = "business-cards"
