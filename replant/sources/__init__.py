"""Source providers: git clones, flattened exports, and local trees."""
