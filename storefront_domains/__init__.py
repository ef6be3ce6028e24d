"""Storefront Domains: custom domain onboarding service."""

__version__ = "0.1.0"
