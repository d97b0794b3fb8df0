"""Pure domain layer: value objects and transforms, no I/O."""
