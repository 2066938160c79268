import os
from contextlib import contextmanager
from functools import wraps
from log.log import get_logger
from luaugen.once import Once
from luaugen.settings import DEFAULT_PROCESS_NAME, ENVVAR_LUAUGEN_NAME
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
    OTLPSpanExporter,
)
from opentelemetry.sdk.environment_variables import (
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT,
)
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from typing import Callable, Optional

logger = get_logger(__name__)

_tracers: dict[str, trace.Tracer] = {}
_providers: dict[str, TracerProvider] = {}
_processor: Optional[BatchSpanProcessor] = None
_process_name: Optional[str] = None


def force_flush():
    # Before exiting we must force-flush the providers, to make sure all spans
    # are recorded. A plugin lives for a single request, so without this it
    # would never get to flush its traces.
    global _providers
    for provider in _providers.values():
        process_name = provider.resource.attributes.get("service.name")
        logger.debug(
            f"Force-flushing tracer for '{process_name}'; "
            "this may delay shutdown..."
        )
        provider.force_flush()


def force_flush_and_shutdown():
    force_flush()
    global _providers
    for provider in _providers.values():
        provider.shutdown()


def _start(process_name: str):
    global _process_name
    _process_name = process_name

    if OTEL_EXPORTER_OTLP_TRACES_ENDPOINT not in os.environ:
        # Tracing is not enabled; do nothing, tracers continue to be
        # NOOPs.
        return

    global _processor
    assert _processor is None, "Processor already initialized"

    global _providers
    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: _process_name}),
    )
    trace.set_tracer_provider(provider)
    _providers[process_name] = provider

    _processor = BatchSpanProcessor(OTLPSpanExporter())
    provider.add_span_processor(_processor)


# We're using a global here because we only want to initialize the
# tracing threads once per process.
_start_once = Once(_start)


def start(process_name: Optional[str] = None):
    if process_name is None:
        process_name = os.environ.get(
            ENVVAR_LUAUGEN_NAME,
            DEFAULT_PROCESS_NAME,
        )

    _start_once(process_name)


def _get_tracer(name: str) -> trace.Tracer:
    global _tracers
    global _processor

    if name not in _tracers:
        if name in _providers:
            provider = _providers[name]
        else:
            provider = TracerProvider(
                resource=Resource(attributes={SERVICE_NAME: name})
            )
            if _processor is not None:
                provider.add_span_processor(_processor)
            _providers[name] = provider
        _tracers[name] = provider.get_tracer(name)

    return _tracers[name]


@contextmanager
def span(span_name: str, **span_kwargs):
    """
    Start a new tracing span. Does nothing if `start()` has not been called.
    """
    global _process_name
    if _process_name is None:
        yield
        return

    with _get_tracer(_process_name).start_as_current_span(
        span_name,
        **span_kwargs,
    ):
        yield


def main_span(name: Optional[str] = None, **span_kwargs) -> Callable:
    """
    Convenience decorator to run synchronous 'main' functions in a span.

    A shorthand for something like:
      def main():
        luaugen.tracing.start("my-process")
        ...
        luaugen.tracing.force_flush_and_shutdown()

    Which can instead be written as:

      @main_span("my-process")
      def main():
        ...

    Traces are flushed even if the function raises (including `SystemExit`),
    and the function's return value is passed through.
    """

    def decorator(func: Callable) -> Callable:

        @wraps(func)
        def wrapper(*args, **kwargs):
            start(name)
            global _process_name
            assert _process_name is not None
            try:
                with _get_tracer(_process_name).start_as_current_span(
                    func.__qualname__ + "()",
                    **span_kwargs,
                ):
                    return func(*args, **kwargs)
            finally:
                force_flush_and_shutdown()

        return wrapper

    return decorator
