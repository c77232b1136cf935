"""Configuration: defaults, validated settings, and the layered loader."""
