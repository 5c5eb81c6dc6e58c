"""Configuration and cross-cutting helpers."""
