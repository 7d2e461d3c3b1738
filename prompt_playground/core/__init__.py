"""
Core modules for Prompt Playground.

This package contains token estimation, pricing, prompt analysis,
prompt rewriting, template ranking and language detection.
"""
