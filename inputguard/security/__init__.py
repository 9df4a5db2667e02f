"""Canonicalization, whitelist patterns, security logging and stream helpers."""
