"""Servings: inference backends and the workers that own them."""

__all__: list[str] = []
