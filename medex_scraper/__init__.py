"""Resumable scraper for pharmaceutical brand listings and detail pages."""
