"""Generated client artifacts (routes, live-reload stamp)."""

from sitectl.codegen.generator import CodeGenerator

__all__ = ["CodeGenerator"]
