from .basic_io import BasicIO
from .memory_io import MemoryIO

__all__ = ['BasicIO', 'MemoryIO']
