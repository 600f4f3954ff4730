"""Vector entities, codec, math, and backend policy helpers."""
