"""Core business logic: scoring, caches, the RMP client, and data models.

This module is framework-agnostic. It has no dependency on MCP, FastMCP,
Starlette, or any server framework.
"""
