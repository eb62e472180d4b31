"""Application layer: DTOs, ports (interfaces), and the two engines."""
