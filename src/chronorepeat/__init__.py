"""ChronoRepeat - recurring job scheduling on top of a durable repeat registry."""

__version__ = "1.0.0"
