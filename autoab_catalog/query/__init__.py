"""Query composition, relevance ranking and facet resolution."""
