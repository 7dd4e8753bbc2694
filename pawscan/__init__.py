"""Paw Scan API - pet food product catalog service."""
