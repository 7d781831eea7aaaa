from .base import ExecutionTool

__all__ = ["ExecutionTool"]
