from .unused_class_engine import UnusedClassOptions, find_unused_classes

__all__ = ['UnusedClassOptions', 'find_unused_classes']
