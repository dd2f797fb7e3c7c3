"""Forensic screenshot watermarking service."""
