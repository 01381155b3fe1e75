"""Configuration for kvfile."""
