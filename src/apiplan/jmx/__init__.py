"""JMeter document model and compiler."""

from .generator import JMXDocument, JMXGenerator

__all__ = (
    'JMXDocument',
    'JMXGenerator',
)
