"""HTML → record extractors (listing pages, detail pages, long-form sections)."""
