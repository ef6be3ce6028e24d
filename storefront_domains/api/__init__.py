"""HTTP API for Storefront Domains."""
