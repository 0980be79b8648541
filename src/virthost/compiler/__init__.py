"""Configuration to resource compilation."""

from virthost.compiler.compiler import compile_host

__all__ = ["compile_host"]
