from .langfuse import (
    LangfuseConfigError,
    LangfuseTraceContext,
    bind_langfuse_trace_context,
    initialize_langfuse,
    shutdown_langfuse,
    start_langfuse_generation,
    start_langfuse_span,
)

__all__ = [
    "LangfuseConfigError",
    "LangfuseTraceContext",
    "bind_langfuse_trace_context",
    "initialize_langfuse",
    "shutdown_langfuse",
    "start_langfuse_generation",
    "start_langfuse_span",
]
