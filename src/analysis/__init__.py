"""Graph analysis over the module requirement graph."""
